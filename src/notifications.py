# src/notifications.py
import logging
import threading

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Time to reapply sunscreen! ☀️"
REMINDER_BODY = "Protect your skin by reapplying sunscreen now."


def log_notification(title, body):
    logger.info("%s %s", title, body)


class ReminderScheduler:
    """Sunscreen reapplication reminders.

    Nothing is delivered until request_permission() has been called once.
    Only one reminder is pending at a time; scheduling again replaces it.
    """

    def __init__(self, notify=log_notification):
        self.notify = notify
        self.permission_granted = False
        self._timer = None
        self._lock = threading.Lock()

    def request_permission(self):
        self.permission_granted = True
        return self.permission_granted

    def _deliver(self, timer):
        with self._lock:
            if self._timer is timer:
                self._timer = None
        self.notify(REMINDER_TITLE, REMINDER_BODY)

    def schedule_reapplication_reminder(self, minutes):
        if not self.permission_granted:
            logger.debug("Reminder not scheduled, notification permission not granted")
            return None
        if not minutes or minutes <= 0:
            return None

        timer = threading.Timer(minutes * 60, lambda: self._deliver(timer))
        timer.daemon = True
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = timer
        timer.start()
        logger.info("Reapplication reminder scheduled in %s minutes", minutes)
        return timer

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self):
        return self._timer is not None

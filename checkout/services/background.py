# checkout/services/background.py
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def fire_and_forget(task, *args) -> bool:
    """
    Queue a celery task without waiting for it.

    The task carries its own retry policy; a broker outage at dispatch time is
    logged and swallowed so it can never undo the caller's committed work.
    """
    try:
        task.delay(*args)
        return True
    except Exception as e:
        logger.error(f"Could not queue {task.name}{args}: {e}")
        return False

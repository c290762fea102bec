import logging

from flask_apscheduler import APScheduler

logger = logging.getLogger(__name__)


def init_scheduler(app, manager):
    """Start the idle-session reaper for ``app``. Returns the scheduler or None."""
    idle_timeout = app.config.get('SESSION_IDLE_TIMEOUT', 0)
    if not app.config.get('ENABLE_REAPER') or idle_timeout <= 0:
        logger.info("Idle upload reaper disabled")
        return None

    scheduler = APScheduler()
    scheduler.init_app(app)
    scheduler.start()

    scheduler.add_job(
        id='reap_idle_uploads',
        func=reap_idle_uploads,
        args=[manager, idle_timeout],
        trigger='interval',
        seconds=app.config.get('REAPER_INTERVAL_SECONDS', 60),
        replace_existing=True
    )

    logger.info("Idle upload reaper started (timeout %ss)", idle_timeout)
    return scheduler

def reap_idle_uploads(manager, idle_timeout):
    """Cancel uploads that stopped sending chunks - runs on the reaper interval"""
    try:
        manager.reap_idle(idle_timeout)
    except Exception:
        logger.exception("Error while reaping idle uploads")

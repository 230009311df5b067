import logging
from datetime import date

from eventhive.extensions import db, scheduler
from eventhive.models import Event
from eventhive.services.analytics import refresh_event_analytics

logger = logging.getLogger(__name__)


def refresh_analytics(today=None):
    """Close out past events and rebuild every event's analytics row. Needs an app context."""
    today = today or date.today()

    finished = Event.query.filter(Event.status == "active", Event.date < today).all()
    for event in finished:
        event.status = "completed"
    if finished:
        db.session.commit()
        logger.info(f"Marked {len(finished)} past events as completed")

    refreshed = 0
    for event in Event.query.all():
        try:
            refresh_event_analytics(event, today=today)
            db.session.commit()
            refreshed += 1
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error refreshing analytics for event {event.id}: {e}")

    logger.info(f"Daily analytics refresh done: {refreshed} events")
    return refreshed


def register_jobs(app):
    def daily_analytics_job():
        with app.app_context():
            refresh_analytics()

    scheduler.add_job(
        id="refresh_analytics",
        func=daily_analytics_job,
        trigger="cron",
        hour=3,
        minute=0,
        replace_existing=True,
    )

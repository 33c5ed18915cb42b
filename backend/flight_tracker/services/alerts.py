import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from flight_tracker.schemas import NotificationPreferences, WatchlistEntry, price_change_percentage
from flight_tracker.services.notification import NotificationMessage

logger = logging.getLogger(__name__)

FLIGHT_ALERT = "FLIGHT_ALERT"
DEPARTURE_REMINDER = "DEPARTURE_REMINDER"


class AlertType(str, enum.Enum):
    PRICE_DROPPED = "price_dropped"
    PRICE_INCREASED = "price_increased"
    TARGET_REACHED = "target_reached"
    DEPARTURE_REMINDER = "departure_reminder"


@dataclass
class PriceAlert:
    type: AlertType
    entry_id: str
    percentage: float  # magnitude of the move since the entry was added
    price: Decimal


def evaluate(entry: WatchlistEntry, preferences: NotificationPreferences) -> List[PriceAlert]:
    """
    Decide which price alerts an entry's current price triggers.

    The move is measured against the entry's initial price, not the previous
    snapshot. Drop and increase alerts fire when the move reaches the
    configured threshold; they are skipped when there is no usable initial
    price. Target-reached fires whenever the price is at or below the
    target and may fire together with a drop alert.
    """
    if not entry.alert_enabled:
        return []

    alerts: List[PriceAlert] = []
    price = entry.current_price
    has_baseline = entry.initial_price is not None and entry.initial_price > 0
    change = price_change_percentage(entry.initial_price, price)
    magnitude = abs(change)

    if has_baseline and change < 0 and preferences.enable_price_drop_alerts:
        if magnitude >= preferences.price_drop_threshold:
            alerts.append(PriceAlert(AlertType.PRICE_DROPPED, entry.id, magnitude, price))

    if has_baseline and change > 0 and preferences.enable_price_increase_alerts:
        if magnitude >= preferences.price_increase_threshold:
            alerts.append(PriceAlert(AlertType.PRICE_INCREASED, entry.id, magnitude, price))

    if entry.below_target_price:
        alerts.append(PriceAlert(AlertType.TARGET_REACHED, entry.id, 0.0, price))

    return alerts


def departure_reminder_due(
    entry: WatchlistEntry,
    preferences: NotificationPreferences,
    now: datetime,
) -> bool:
    """True once ``now`` is inside the reminder window before departure."""
    if not preferences.enable_departure_reminders or entry.reminder_sent_at is not None:
        return False
    departure = entry.offer.departure_at
    reminder_at = departure - timedelta(hours=preferences.reminder_hours_before)
    return reminder_at <= now < departure


def format_alert(entry: WatchlistEntry, alert: PriceAlert) -> NotificationMessage:
    offer = entry.offer
    route = f"{offer.origin.code} → {offer.destination.code}"

    if alert.type == AlertType.PRICE_DROPPED:
        return NotificationMessage(
            title="Price Drop Alert! 📉",
            body=f"{route}: Price dropped {alert.percentage:.1f}% to {offer.formatted_price}",
            category=FLIGHT_ALERT,
            correlation_id=entry.id,
            priority="high",
            tags=["airplane", "chart_with_downwards_trend"],
        )
    if alert.type == AlertType.PRICE_INCREASED:
        return NotificationMessage(
            title="Price Increase Alert 📈",
            body=f"{route}: Price increased {alert.percentage:.1f}% to {offer.formatted_price}",
            category=FLIGHT_ALERT,
            correlation_id=entry.id,
            priority="default",
            tags=["airplane", "chart_with_upwards_trend"],
        )
    if alert.type == AlertType.TARGET_REACHED:
        return NotificationMessage(
            title="Target Price Reached! 🎯",
            body=f"{route} is now at your target price: {offer.formatted_price}",
            category=FLIGHT_ALERT,
            correlation_id=entry.id,
            priority="urgent",
            tags=["airplane", "dart"],
        )
    return NotificationMessage(
        title="Upcoming Flight Reminder ✈️",
        body=(
            f"Your flight {offer.flight_number} from {offer.origin.display_name} "
            f"to {offer.destination.display_name} departs "
            f"{offer.departure_at.strftime('%b %d at %H:%M')}"
        ),
        category=DEPARTURE_REMINDER,
        correlation_id=entry.id,
        priority="default",
        tags=["airplane", "alarm_clock"],
    )


class AlertEvaluator:
    """Evaluates watchlist price changes and hands alerts to a notifier."""

    def __init__(self, notifier=None):
        self.notifier = notifier

    async def _deliver(self, message: NotificationMessage) -> None:
        if self.notifier is None:
            return
        try:
            await self.notifier.send(message)
        except Exception as e:
            logger.error(f"Failed to send notification '{message.title}': {e}")

    async def process(
        self,
        entry: WatchlistEntry,
        preferences: NotificationPreferences,
        previous_price: Optional[Decimal] = None,
    ) -> List[PriceAlert]:
        alerts = evaluate(entry, preferences)
        for alert in alerts:
            logger.info(
                f"{alert.type.value} for entry {entry.id} "
                f"({previous_price} → {alert.price}, {alert.percentage:.1f}%)"
            )
            await self._deliver(format_alert(entry, alert))
        return alerts

    async def remind(self, entry: WatchlistEntry) -> PriceAlert:
        alert = PriceAlert(AlertType.DEPARTURE_REMINDER, entry.id, 0.0, entry.current_price)
        logger.info(f"Departure reminder for entry {entry.id} ({entry.offer.flight_number})")
        await self._deliver(format_alert(entry, alert))
        return alert

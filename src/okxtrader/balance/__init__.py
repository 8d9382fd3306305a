"""Account balance synchronisation from push and pull sources."""
from .base import BalanceChannel, BalancePuller, BalanceHandler
from .coordinator import BalanceSyncCoordinator, BALANCE_TOPIC
from .refresher import BalanceRefresher, PullOutcome
from .service import BalanceSubscriptionService

__all__ = [
    "BalanceChannel",
    "BalancePuller",
    "BalanceHandler",
    "BalanceSyncCoordinator",
    "BALANCE_TOPIC",
    "BalanceRefresher",
    "PullOutcome",
    "BalanceSubscriptionService",
]

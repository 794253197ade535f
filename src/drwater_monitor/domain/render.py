import copy
import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from drwater_monitor.domain.models import CartridgeState, Snapshot

logger = logging.getLogger(__name__)

PLACEHOLDER = "--"
BADGE_BASE_CLASS = "status-badge"
KNOWN_STATUSES = ("ok", "warning", "replace")

METRICS = (
    ("total_volume", "Total Volume", "L"),
    ("current_speed", "Current Flow", "L/min"),
    ("highest_speed", "Highest Flow", "L/min"),
)


def format_fixed(value: Optional[float]) -> str:
    if value is None:
        return "NaN"
    return f"{value:.2f}"


def format_percent(value: float) -> str:
    return f"{value:g}%"


@dataclass
class MetricView:
    label: str
    unit: str
    value: str = "0.00"

    @property
    def text(self) -> str:
        return f"{self.value}{self.unit}"


@dataclass
class CartridgeCard:
    index: int
    badge_text: str = PLACEHOLDER
    badge_class: str = BADGE_BASE_CLASS
    bar_color: str = ""
    width_percent: float = 0.0
    used_text: str = f"Used: {PLACEHOLDER} L"
    remaining_text: str = f"Remaining: {PLACEHOLDER} L"

    @property
    def title(self) -> str:
        return f"Cartridge #{self.index}"

    @property
    def width_css(self) -> str:
        return format_percent(self.width_percent)


@dataclass
class DashboardView:
    connected: bool = False
    metrics: Dict[str, MetricView] = field(default_factory=dict)
    cartridges: List[CartridgeCard] = field(default_factory=list)

    @property
    def connection_class(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"status-indicator {state}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["connection_class"] = self.connection_class
        for key, metric in self.metrics.items():
            data["metrics"][key]["text"] = metric.text
        for card, raw in zip(self.cartridges, data["cartridges"]):
            raw["title"] = card.title
            raw["width_css"] = card.width_css
        return data


def status_style(status: Optional[str]) -> tuple[str, str]:
    """Badge class and bar color for a status string, matched case-insensitively."""
    key = (status or "").lower()
    if key in KNOWN_STATUSES:
        return f"{BADGE_BASE_CLASS} status-{key}", f"var(--status-{key})"
    return BADGE_BASE_CLASS, ""


class Renderer:
    """
    Holds the dashboard view and repaints it from snapshots.

    The card grid is built once with placeholders and never changes length.
    """

    def __init__(self, cartridge_count: int = 7) -> None:
        if cartridge_count < 1:
            raise ValueError("cartridge_count must be >= 1")
        self.cartridge_count = cartridge_count
        self._view = DashboardView(
            metrics={key: MetricView(label=label, unit=unit) for key, label, unit in METRICS},
            cartridges=[CartridgeCard(index=i) for i in range(1, cartridge_count + 1)],
        )

    @property
    def view(self) -> DashboardView:
        return copy.deepcopy(self._view)

    def to_dict(self) -> dict:
        return self._view.to_dict()

    def set_connected(self, connected: bool) -> bool:
        """Returns True when the indicator actually changed."""
        changed = self._view.connected != bool(connected)
        self._view.connected = bool(connected)
        return changed

    def paint(self, snapshot: Snapshot) -> DashboardView:
        for key, _, _ in METRICS:
            self._view.metrics[key].value = format_fixed(getattr(snapshot, key))

        if len(snapshot.cartridges) > self.cartridge_count:
            logger.debug(
                "Ignoring %d cartridge entries beyond #%d",
                len(snapshot.cartridges) - self.cartridge_count,
                self.cartridge_count,
            )
        for card, state in zip(self._view.cartridges, snapshot.cartridges):
            self._paint_card(card, state)
        return self.view

    @staticmethod
    def _paint_card(card: CartridgeCard, state: CartridgeState) -> None:
        card.badge_text = state.status if state.status is not None else ""
        card.badge_class, card.bar_color = status_style(state.status)
        card.width_percent = state.percent_used
        card.used_text = f"Used: {format_fixed(state.used)} L"
        card.remaining_text = f"Remaining: {format_fixed(state.remaining)} L"

"""Per-shop order status flow.

A flow is data: an ordered list of statuses, each with the transitions that
leave it. Shops persist their flow as JSON in the camelCase shape clients
send::

    {"statuses": [{"value": 1, "label": "pending", "type": "warning",
                   "isFinal": false, "restock": false,
                   "actions": [{"name": "accept", "nextStatus": 2,
                                "nextStatusLabel": "accepted"}]}]}
"""

import json
from dataclasses import dataclass, field

from orderease.shared.errors import InvalidTransition, TerminalState, ValidationFailed


@dataclass(frozen=True)
class Transition:
    name: str
    next_status: int
    next_status_label: str = ""

    def to_dict(self) -> dict:
        return {"name": self.name, "nextStatus": self.next_status, "nextStatusLabel": self.next_status_label}


@dataclass(frozen=True)
class OrderStatusConfig:
    value: int
    label: str
    type: str = "default"
    is_final: bool = False
    transitions: tuple[Transition, ...] = ()
    restock: bool = False

    def transition_to(self, next_status: int) -> Transition | None:
        return next((t for t in self.transitions if t.next_status == next_status), None)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "label": self.label,
            "type": self.type,
            "isFinal": self.is_final,
            "restock": self.restock,
            "actions": [t.to_dict() for t in self.transitions],
        }


def _as_int(value, field_name):
    if isinstance(value, bool) or not isinstance(value, int | str):
        raise ValidationFailed(f"{field_name} must be an integer", field="order_status_flow")
    try:
        return int(value)
    except ValueError:
        raise ValidationFailed(f"{field_name} must be an integer", field="order_status_flow") from None


@dataclass(frozen=True)
class OrderStatusFlow:
    statuses: tuple[OrderStatusConfig, ...] = field(default_factory=tuple)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def default(cls) -> "OrderStatusFlow":
        return cls(statuses=DEFAULT_FLOW.statuses)

    @classmethod
    def from_dict(cls, data) -> "OrderStatusFlow":
        if not isinstance(data, dict) or not isinstance(data.get("statuses"), list):
            raise ValidationFailed("Order status flow must be an object with a 'statuses' list", field="order_status_flow")

        statuses = []
        for entry in data["statuses"]:
            if not isinstance(entry, dict):
                raise ValidationFailed("Each status must be an object", field="order_status_flow")
            actions = entry.get("actions") or entry.get("transitions") or []
            if not isinstance(actions, list):
                raise ValidationFailed("Status actions must be a list", field="order_status_flow")
            transitions = tuple(
                Transition(
                    name=str(action.get("name", "")),
                    next_status=_as_int(action.get("nextStatus"), "nextStatus"),
                    next_status_label=str(action.get("nextStatusLabel", "")),
                )
                for action in actions
                if isinstance(action, dict)
            )
            statuses.append(
                OrderStatusConfig(
                    value=_as_int(entry.get("value"), "value"),
                    label=str(entry.get("label", "")),
                    type=str(entry.get("type") or "default"),
                    is_final=bool(entry.get("isFinal", False)),
                    transitions=transitions,
                    restock=bool(entry.get("restock", False)),
                )
            )
        return cls(statuses=tuple(statuses))

    @classmethod
    def from_json(cls, raw) -> "OrderStatusFlow":
        """Decode a stored flow; an empty value means the default flow."""
        if raw in (None, "", b""):
            return cls.default()
        if isinstance(raw, dict):
            return cls.from_dict(raw)
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            raise ValidationFailed("Order status flow must be valid JSON", field="order_status_flow") from None
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {"statuses": [status.to_dict() for status in self.statuses]}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find(self, value: int) -> OrderStatusConfig | None:
        return next((s for s in self.statuses if s.value == value), None)

    def contains(self, value: int) -> bool:
        return self.find(value) is not None

    def initial_status(self) -> int:
        """The first configured non-final status."""
        for status in self.statuses:
            if not status.is_final:
                return status.value
        raise ValidationFailed("Order status flow has no initial status", field="order_status_flow")

    def values(self) -> list[int]:
        return [s.value for s in self.statuses]

    def final_values(self) -> list[int]:
        return [s.value for s in self.statuses if s.is_final]

    def unfinished_values(self) -> list[int]:
        return [s.value for s in self.statuses if not s.is_final]

    def labels(self) -> dict[int, str]:
        return {s.value: s.label for s in self.statuses}

    def edges(self) -> set[tuple[int, int]]:
        return {(s.value, t.next_status) for s in self.statuses if not s.is_final for t in s.transitions}

    def check_transition(self, current: int, requested: int) -> OrderStatusConfig:
        """Return the config of ``requested`` if ``current -> requested`` is allowed.

        Raises ``TerminalState`` when ``current`` is final and
        ``InvalidTransition`` when the edge is not configured.
        """
        config = self.find(current)
        if config is None:
            raise InvalidTransition(f"Current status {current} is not part of the shop's flow", field="status")
        if config.is_final:
            raise TerminalState(f"Order is in final status '{config.label}' and cannot change", field="status")
        if config.transition_to(requested) is None:
            raise InvalidTransition(f"Cannot move order from status {current} to {requested}", field="status")

        target = self.find(requested)
        if target is None:
            raise InvalidTransition(f"Status {requested} is not part of the shop's flow", field="status")
        return target

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> "OrderStatusFlow":
        if not self.statuses:
            raise ValidationFailed("Order status flow must define at least one status", field="order_status_flow")

        values = [s.value for s in self.statuses]
        duplicates = sorted({v for v in values if values.count(v) > 1})
        if duplicates:
            raise ValidationFailed(f"Duplicate status values: {duplicates}", field="order_status_flow")

        known = set(values)
        for status in self.statuses:
            if status.is_final and status.transitions:
                raise ValidationFailed(
                    f"Final status {status.value} cannot have transitions", field="order_status_flow"
                )
            if not status.is_final and not status.transitions:
                raise ValidationFailed(
                    f"Status {status.value} is not final and has no transitions", field="order_status_flow"
                )
            for transition in status.transitions:
                if transition.next_status not in known:
                    raise ValidationFailed(
                        f"Status {status.value} transitions to unknown status {transition.next_status}",
                        field="order_status_flow",
                    )

        self.initial_status()
        return self


def _status(value, label, type_, is_final=False, actions=()):
    return OrderStatusConfig(
        value=value,
        label=label,
        type=type_,
        is_final=is_final,
        transitions=tuple(Transition(name, nxt, nxt_label) for name, nxt, nxt_label in actions),
    )


PENDING = 1
ACCEPTED = 2
REJECTED = 3
SHIPPED = 4
COMPLETED = 10
CANCELED = -1

DEFAULT_FLOW = OrderStatusFlow(
    statuses=(
        _status(
            PENDING,
            "pending",
            "warning",
            actions=(("accept", ACCEPTED, "accepted"), ("reject", REJECTED, "rejected"), ("cancel", CANCELED, "canceled")),
        ),
        _status(ACCEPTED, "accepted", "primary", actions=(("ship", SHIPPED, "shipped"),)),
        _status(REJECTED, "rejected", "danger", is_final=True),
        _status(SHIPPED, "shipped", "info", actions=(("complete", COMPLETED, "completed"),)),
        _status(COMPLETED, "completed", "success", is_final=True),
        _status(CANCELED, "canceled", "info", is_final=True),
    )
)

"""
Working state for one bill while the user reviews items and assigns people.

Every mutation swaps in new lists instead of editing them in place, so a
reader holding the previous `items` / `participants` never sees a half-applied
change.  Open sessions live in process memory and are lost on restart; a
finished split is kept by saving it as a bill.
"""
import logging
import uuid
from typing import Optional

from models.schemas import Item, Participant, ParseResult, PersonTotal
from services.split_service import compute_totals_before_tip

logger = logging.getLogger("billsplit.session")

DEFAULT_PARTICIPANT_NAME = "Person 1"


class BillSession:
    def __init__(self, session_id: Optional[str] = None):
        self.id = session_id or str(uuid.uuid4())
        self.participants: list[Participant] = [Participant(name=DEFAULT_PARTICIPANT_NAME)]
        self.items: list[Item] = []
        self.tax: Optional[float] = None

    # ── Participants ──────────────────────────────────────────────────────────

    def add_participant(self, name: str) -> Participant:
        participant = Participant(name=name)
        self.participants = self.participants + [participant]
        return participant

    def rename_participant(self, participant_id: str, name: str) -> None:
        self.participants = [
            p.model_copy(update={"name": Participant(name=name).name}) if p.id == participant_id else p
            for p in self.participants
        ]

    def delete_participant(self, participant_id: str) -> bool:
        """Remove a participant and unassign them everywhere.  The last one stays."""
        if len(self.participants) <= 1:
            logger.debug("Refusing to delete the only participant")
            return False
        self.participants = [p for p in self.participants if p.id != participant_id]
        self.items = [
            item.model_copy(update={
                "assigned_participants": [pid for pid in item.assigned_participants
                                          if pid != participant_id],
            })
            if participant_id in item.assigned_participants else item
            for item in self.items
        ]
        return True

    # ── Items ────────────────────────────────────────────────────────────────

    def upsert_item(self, item: Item) -> None:
        """Replace the item with the same id, or append it as a new one."""
        if any(i.id == item.id for i in self.items):
            self.items = [item if i.id == item.id else i for i in self.items]
        else:
            self.items = self.items + [item]

    def delete_item(self, item_id: str) -> None:
        self.items = [i for i in self.items if i.id != item_id]

    def toggle_assignment(self, item_id: str, participant_id: str) -> None:
        if not any(p.id == participant_id for p in self.participants):
            raise KeyError(f"Unknown participant {participant_id}")

        def toggled(item: Item) -> Item:
            assigned = item.assigned_participants
            if participant_id in assigned:
                assigned = [pid for pid in assigned if pid != participant_id]
            else:
                assigned = assigned + [participant_id]
            return item.model_copy(update={"assigned_participants": assigned})

        self.items = [toggled(i) if i.id == item_id else i for i in self.items]

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def load_parse_result(self, result: ParseResult) -> None:
        """Replace the items with freshly parsed ones; pre-fill tax when found."""
        self.items = [Item(name=p.name, price=p.price) for p in result.items]
        if result.tax is not None:
            self.tax = result.tax

    def clear(self) -> None:
        self.__init__(self.id)

    def totals_before_tip(self) -> list[PersonTotal]:
        return compute_totals_before_tip(self.participants, self.items, self.tax)


# ── Open sessions ────────────────────────────────────────────────────────────

_sessions: dict[str, BillSession] = {}


def open_session() -> BillSession:
    session = BillSession()
    _sessions[session.id] = session
    logger.info("Opened session %s", session.id)
    return session


def get_session(session_id: str) -> Optional[BillSession]:
    return _sessions.get(session_id)


def close_session(session_id: str) -> bool:
    return _sessions.pop(session_id, None) is not None

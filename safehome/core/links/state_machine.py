# safehome/core/links/state_machine.py
from safehome.common.constants import LinkStatus


class LinkStateMachine:
    # Переходы, которые совершает ребёнок. Повторный запрос родителя
    # сбрасывает связь в PENDING из любого статуса и сюда не входит.
    ALLOWED_TRANSITIONS = {
        LinkStatus.PENDING: [LinkStatus.ACCEPTED, LinkStatus.DECLINED],
        LinkStatus.ACCEPTED: [LinkStatus.REVOKED],
        LinkStatus.DECLINED: [],
        LinkStatus.REVOKED: [],
    }

    @staticmethod
    def source_of(new_status: LinkStatus) -> LinkStatus:
        """Единственный статус, из которого достижим new_status."""
        for source, targets in LinkStateMachine.ALLOWED_TRANSITIONS.items():
            if new_status in targets:
                return source
        raise ValueError(f"Статус {new_status.value} недостижим переходом ребёнка")

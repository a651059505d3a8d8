"""
校验执行级别状态机：unvalidated -> advisory -> strict，只允许向前。
"""

from __future__ import annotations

import enum

from .errors import EnforcementDowngradeError


class EnforcementLevel(str, enum.Enum):
    UNVALIDATED = "unvalidated"
    ADVISORY = "advisory"  # 违规只告警，写入照常成功
    STRICT = "strict"  # 违规直接拒绝


ALLOWED_TRANSITIONS: dict[EnforcementLevel, set[EnforcementLevel]] = {
    EnforcementLevel.UNVALIDATED: {EnforcementLevel.ADVISORY, EnforcementLevel.STRICT},
    EnforcementLevel.ADVISORY: {EnforcementLevel.STRICT},
    EnforcementLevel.STRICT: set(),
}


def _normalize(level: EnforcementLevel | str) -> EnforcementLevel:
    return level if isinstance(level, EnforcementLevel) else EnforcementLevel(level)


class EnforcementStateMachine:
    @staticmethod
    def validate_transition(
        kind: str,
        current: EnforcementLevel | str,
        target: EnforcementLevel | str,
    ) -> None:
        current_enum = _normalize(current)
        target_enum = _normalize(target)
        if current_enum == target_enum:
            return
        if target_enum not in ALLOWED_TRANSITIONS.get(current_enum, set()):
            raise EnforcementDowngradeError(kind, current_enum.value, target_enum.value)

    @staticmethod
    def resolve(
        kind: str,
        current: EnforcementLevel | str,
        target: EnforcementLevel | str | None,
    ) -> EnforcementLevel:
        """返回迁移后的级别；target 为空表示保持不变"""
        current_enum = _normalize(current)
        if target is None:
            return current_enum
        EnforcementStateMachine.validate_transition(kind, current_enum, target)
        return _normalize(target)

#!/usr/bin/env python3
"""
Handoff Module - verified physical transfer of a matched item.

Public API:
- HandoffStateMachine: pure create/submit/reset transitions
- HandoffState, HandoffView, SubmitResult: snapshots and results
- HandoffStatus, PartyRole, SubmitOutcome: enums
- CompletionSink: seam for the completion side effects
"""

from core.handoff.models import (
    HandoffState,
    HandoffStatus,
    HandoffView,
    PartyRole,
    SubmitOutcome,
    SubmitResult,
)
from core.handoff.interfaces import CompletionSink
from core.handoff.machine import (
    HandoffStateMachine,
    InvalidCodeFormat,
    generate_code,
    utc_now,
    DEFAULT_TTL,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_CODE_LENGTH,
)

__all__ = [
    'HandoffStateMachine',
    'InvalidCodeFormat',
    'generate_code',
    'utc_now',
    'DEFAULT_TTL',
    'DEFAULT_MAX_ATTEMPTS',
    'DEFAULT_CODE_LENGTH',
    'HandoffState',
    'HandoffStatus',
    'HandoffView',
    'PartyRole',
    'SubmitOutcome',
    'SubmitResult',
    'CompletionSink',
]

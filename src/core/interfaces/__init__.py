"""Contratos (Protocol) entre el core y el mundo exterior.

El core pide confirmaciones, emite notificaciones, guarda el token y resuelve
identidades sólo a través de estos protocolos; la CLI y los adaptadores los
implementan y los tests los reemplazan por fakes.
"""

from core.interfaces.collaborators import (
    ConfirmationGate,
    IdentityProvider,
    NotificationSink,
    TokenPersistence,
)

__all__ = [
    "ConfirmationGate",
    "IdentityProvider",
    "NotificationSink",
    "TokenPersistence",
]

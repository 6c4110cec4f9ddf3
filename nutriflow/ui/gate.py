"""
Modal/focus gate.
A blocking overlay and a focused text input are each granted through an
ownership handle; the gate only reports whether a handle is live.
"""

import logging
from typing import Callable, Hashable, Optional


class GateBusyError(RuntimeError):
    """Raised when a second owner tries to take an already held gate"""


class GateHandle:
    """
    Ownership of one gate slot

    Release is idempotent; usable as a context manager.
    """

    def __init__(self, gate: "GateSlot", owner: Hashable):
        self._gate = gate
        self.owner = owner
        self.released = False

    def release(self):
        if self.released:
            return
        self.released = True
        self._gate._release(self)

    def __enter__(self) -> "GateHandle":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self):
        state = 'released' if self.released else 'held'
        return f"<GateHandle {self._gate.name} owner={self.owner!r} {state}>"


class GateSlot:
    """A single-holder slot (modal or focus)"""

    def __init__(self, name: str, on_change: Optional[Callable[[], None]] = None):
        self.logger = logging.getLogger(__name__)
        self.name = name
        self._holder: Optional[GateHandle] = None
        self._on_change = on_change

    @property
    def active(self) -> bool:
        return self._holder is not None

    @property
    def owner(self) -> Optional[Hashable]:
        return self._holder.owner if self._holder else None

    def acquire(self, owner: Hashable) -> GateHandle:
        """
        Grant the slot to owner

        Re-acquiring by the current owner returns the live handle.

        Raises:
            GateBusyError: slot held by a different owner
        """
        if self._holder is not None:
            if self._holder.owner == owner:
                return self._holder
            raise GateBusyError(
                f"{self.name} already held by {self._holder.owner!r}, requested by {owner!r}"
            )

        handle = GateHandle(self, owner)
        self._holder = handle
        self.logger.debug(f"{self.name} acquired by {owner!r}")
        if self._on_change:
            self._on_change()
        return handle

    def release_owner(self, owner: Hashable) -> bool:
        """Release the slot if owner holds it"""
        if self._holder is not None and self._holder.owner == owner:
            self._holder.release()
            return True
        return False

    def force_release(self):
        if self._holder is not None:
            self._holder.release()

    def _release(self, handle: GateHandle):
        if self._holder is handle:
            self._holder = None
            self.logger.debug(f"{self.name} released by {handle.owner!r}")
            if self._on_change:
                self._on_change()


class ModalFocusGate:
    """Aggregates the modal and input-focus slots for the rendering layer"""

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self.modal = GateSlot('modal', on_change)
        self.focus = GateSlot('focus', on_change)

    @property
    def modal_open(self) -> bool:
        return self.modal.active

    @property
    def input_focused(self) -> bool:
        return self.focus.active

    def acquire_modal(self, owner: Hashable) -> GateHandle:
        return self.modal.acquire(owner)

    def acquire_focus(self, owner: Hashable) -> GateHandle:
        return self.focus.acquire(owner)

    def release_owned_by(self, owner: Hashable):
        """Release every slot held by owner (e.g. a screen being left)"""
        self.modal.release_owner(owner)
        self.focus.release_owner(owner)

    def reset(self):
        self.modal.force_release()
        self.focus.force_release()

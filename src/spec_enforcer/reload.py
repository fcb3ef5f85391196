"""Holds the active validator and swaps it on spec reload.

Readers take ``holder.current`` once per call and keep using that snapshot;
a reload builds a complete new validator first and then replaces the single
reference, so a call in flight never sees a half-loaded contract.
"""

import logging
import threading
from pathlib import Path

from spec_enforcer.validation.validator import OpenApiValidator

logger = logging.getLogger(__name__)


class ValidatorHolder:
    def __init__(self, spec_path: Path, strict_mode: bool = False):
        self.spec_path = Path(spec_path)
        self.strict_mode = strict_mode
        self._reload_lock = threading.Lock()
        self._mtime = self._current_mtime()
        self._current = OpenApiValidator.from_file(self.spec_path, strict_mode=strict_mode)

    @property
    def current(self) -> OpenApiValidator:
        return self._current

    def reload(self) -> OpenApiValidator:
        """Rebuild from the spec file. On failure the previous validator stays active."""
        with self._reload_lock:
            mtime = self._current_mtime()
            try:
                validator = OpenApiValidator.from_file(self.spec_path, strict_mode=self.strict_mode)
            except Exception:
                logger.error("Spec reload from %s failed, keeping the previous contract", self.spec_path)
                raise
            self._current = validator
            self._mtime = mtime
            logger.info("Reloaded OpenAPI specification from %s", self.spec_path)
            return validator

    def reload_if_changed(self) -> bool:
        """Reload when the spec file's modification time moved. Returns True if reloaded."""
        mtime = self._current_mtime()
        if mtime is None or mtime == self._mtime:
            return False
        # A broken file is not retried until it changes again
        self._mtime = mtime
        self.reload()
        return True

    def _current_mtime(self) -> float | None:
        try:
            return self.spec_path.stat().st_mtime
        except OSError:
            return None

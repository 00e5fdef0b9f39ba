"""
Application state for an interactive host.

``FilterSession`` holds what a UI needs between user actions and posts a
``Notification`` for every failed action on a queue the presentation layer
drains.  The pipeline itself knows nothing about sessions.
"""

import queue
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import pipeline
from .errors import (
    TRFError, MissingDataError, FILTER_DESIGN_ERROR, EXPORT_ERROR,
)
from .frequency_range import preset_range
from .models import FilterDesignConfig, FilterDesignResult, MeasurementSet


IDLE = 'idle'
LOADING = 'loading'
PROCESSING = 'processing'
READY = 'ready'
ERROR = 'error'


@dataclass(frozen=True)
class Notification:
    kind: str
    error: TRFError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class FilterSession:
    measurements: Optional[MeasurementSet] = None
    config: FilterDesignConfig = field(default_factory=FilterDesignConfig)
    result: Optional[FilterDesignResult] = None
    status: str = IDLE
    error: Optional[str] = None
    notifications: 'queue.SimpleQueue[Notification]' = field(default_factory=queue.SimpleQueue)

    @property
    def has_measurements(self) -> bool:
        return self.measurements is not None

    @property
    def has_coefficients(self) -> bool:
        return self.result is not None and self.result.num_taps > 0

    @property
    def is_busy(self) -> bool:
        return self.status in (LOADING, PROCESSING)

    def _fail(self, e: TRFError) -> None:
        self.status = ERROR
        self.error = str(e)
        self.notifications.put(Notification(e.kind or type(e).__name__, e))

    @contextmanager
    def _action(self, kind: str):
        """Tag, record and re-raise TRFErrors from the block."""
        try:
            with pipeline.tagged(kind):
                yield
        except TRFError as e:
            self._fail(e)
            raise

    def load_file(self, path: Union[str, Path]) -> MeasurementSet:
        self.status = LOADING
        self.error = None
        try:
            self.measurements = pipeline.process_trf_file(path)
        except TRFError as e:
            self._fail(e)
            raise
        self.result = None
        self.status = READY
        return self.measurements

    def load_text(self, text: str) -> MeasurementSet:
        self.status = LOADING
        self.error = None
        try:
            self.measurements = pipeline.process_pasted_text(text)
        except TRFError as e:
            self._fail(e)
            raise
        self.result = None
        self.status = READY
        return self.measurements

    def update_config(self, **changes: Any) -> FilterDesignConfig:
        """Replace config fields; raises InvalidConfigError and keeps the old config."""
        with self._action(FILTER_DESIGN_ERROR):
            config = replace(self.config, **changes)
        self.config = config
        return config

    def select_preset(self, name: str) -> FilterDesignConfig:
        with self._action(FILTER_DESIGN_ERROR):
            frequency_range = preset_range(name)
        return self.update_config(frequency_range=frequency_range)

    def design(self) -> FilterDesignResult:
        with self._action(FILTER_DESIGN_ERROR):
            if self.measurements is None:
                raise MissingDataError("No TRF data loaded")
            self.status = PROCESSING
            self.error = None
            self.result = pipeline.design_filter(self.measurements, self.config)
        self.status = READY
        return self.result

    def export(self, fmt: str, path: Union[str, Path]) -> Path:
        with self._action(EXPORT_ERROR):
            if self.result is None:
                raise MissingDataError("No filter designed")
            return pipeline.export_filter(self.result.coefficients, fmt, path,
                                          self.config.sample_rate)

    def reset(self) -> None:
        self.measurements = None
        self.result = None
        self.status = IDLE
        self.error = None

    def clear_error(self) -> None:
        self.error = None
        if self.status == ERROR:
            self.status = IDLE

    def drain(self) -> List[Notification]:
        """Remove and return all pending notifications."""
        out = []
        while True:
            try:
                out.append(self.notifications.get_nowait())
            except queue.Empty:
                return out

    def snapshot(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'error': self.error,
            'config': self.config.to_dict(),
            'measurements': self.measurements.to_dict() if self.measurements else None,
            'num_taps': self.result.num_taps if self.result else 0,
        }

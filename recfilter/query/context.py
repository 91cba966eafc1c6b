"""
Evaluation context handed to every operator function.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Optional, Pattern, Union

from ..cache.regex_cache import RegexCache
from ..core.options import FilterOptions
from ..utils.dates import Clock, now_for, system_clock
from .patterns import regex_flags


@dataclass
class EvaluationContext:
    """
    Per-call state shared by the matcher and the operators.

    Attributes:
        options: Effective options of the call
        regex_cache: Engine-owned cache of compiled patterns
        clock: Source of "now" for the datetime operators
    """
    options: FilterOptions = field(default_factory=FilterOptions)
    regex_cache: RegexCache = field(default_factory=RegexCache)
    clock: Clock = system_clock

    @property
    def case_sensitive(self) -> bool:
        return self.options.case_sensitive

    def fold(self, text: str) -> str:
        """Normalize case unless the call is case sensitive."""
        return text if self.options.case_sensitive else text.lower()

    def regex(self, pattern: Union[str, Pattern]) -> Optional[Pattern]:
        """Compiled pattern honouring ``case_sensitive``, or None if invalid."""
        compiled, _ = self.regex_cache.try_compile(pattern, regex_flags(self.case_sensitive))
        return compiled

    def now_for(self, value: dt.datetime) -> Optional[dt.datetime]:
        return now_for(value, self.clock)

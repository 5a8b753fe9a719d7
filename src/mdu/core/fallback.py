"""Ordered fallback chains.

A chain is an explicit, ordered list of named strategies evaluated by
:func:`first_success`.  Each strategy runs only when every earlier one
produced nothing usable.

Failure policy
--------------
* :class:`~mdu.exceptions.ParseError` is always recovered: it is logged
  and the chain continues, even from the last strategy.
* :class:`~mdu.exceptions.HttpError` (including timeouts) is recovered
  in every strategy except the last, whose failure propagates as the
  terminal error of the chain.
* Any other exception propagates immediately.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from mdu.exceptions import HttpError, ParseError

T = TypeVar("T")

_log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Strategy(Generic[T]):
    """A named, zero-argument extraction step."""

    name: str
    run: Callable[[], T]


def first_success(
    strategies: Sequence[Strategy[T]],
    *,
    default: T,
    is_usable: Callable[[T], bool] = bool,
    logger: logging.Logger | None = None,
    chain: str = "chain",
) -> T:
    """Return the first usable strategy result, or *default*.

    Parameters
    ----------
    strategies:
        Steps in priority order.
    default:
        Returned when no strategy yields a usable result.
    is_usable:
        Predicate deciding whether a result stops the chain.  Defaults
        to truthiness (non-empty list, non-empty document, ...).
    logger:
        Sink for recovered failures.
    chain:
        Label used in log records.

    Raises
    ------
    HttpError
        When the **last** strategy fails to fetch.
    """
    log = logger or _log
    last_index = len(strategies) - 1

    for index, strategy in enumerate(strategies):
        try:
            result = strategy.run()
        except ParseError as exc:
            log.debug("%s: strategy %r skipped, %s", chain, strategy.name, exc)
            continue
        except HttpError as exc:
            if index == last_index:
                raise
            log.warning(
                "%s: strategy %r failed, falling through: %s",
                chain,
                strategy.name,
                exc,
            )
            continue

        if is_usable(result):
            log.debug("%s: strategy %r succeeded", chain, strategy.name)
            return result
        log.debug("%s: strategy %r yielded nothing", chain, strategy.name)

    return default

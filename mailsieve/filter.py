"""Filter pipeline: an ordered list of steps run over a mail.

Each step returns an :class:`Action`.  Steps may also return simpler
values that are coerced:

- ``bool``: True => CONTINUE, False => IGNORE
- ``None``: IGNORE (an absent optional value)
- :class:`SmtpError`: REJECT with that error

A step that raises :class:`SmtpError` rejects the mail as well.
"""

from __future__ import annotations

import abc
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog

from .mail import BasicMail, MailParts

logger = structlog.get_logger()

M = TypeVar("M", bound=BasicMail)


class SmtpError(Exception):
    """SMTP reply used to reject a mail, rendered as ``"<status> <message>"``.

    See https://en.wikipedia.org/wiki/List_of_SMTP_server_return_codes for
    status codes.  The message can be anything.
    """

    def __init__(self, status: int, message: str) -> None:
        super().__init__(status, message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"{self.status} {self.message}"

    @classmethod
    def unauthorized(cls) -> SmtpError:
        """Standard ``530 5.7.0 Authentication required`` reply."""
        return cls(530, "5.7.0 Authentication required")


class ActionKind(str, Enum):
    CONTINUE = "continue"
    IGNORE = "ignore"
    REJECT = "reject"


@dataclass(frozen=True)
class Action:
    """Outcome of one filter step.

    IGNORE stops processing and accepts the mail as it is; REJECT stops
    processing and fails the mail with ``error``.
    """

    kind: ActionKind
    error: SmtpError | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ActionKind(self.kind))
        if self.kind is ActionKind.REJECT:
            if not isinstance(self.error, SmtpError):
                raise TypeError("A REJECT action needs an SmtpError")
        elif self.error is not None:
            raise ValueError(f"A {self.kind.value!r} action cannot carry an error")

    @classmethod
    def proceed(cls) -> Action:
        return cls(ActionKind.CONTINUE)

    @classmethod
    def ignore(cls) -> Action:
        return cls(ActionKind.IGNORE)

    @classmethod
    def reject(cls, error: SmtpError) -> Action:
        return cls(ActionKind.REJECT, error)

    @classmethod
    def coerce(cls, value: Any) -> Action:
        if isinstance(value, Action):
            return value
        if isinstance(value, bool):
            return cls.proceed() if value else cls.ignore()
        if value is None:
            return cls.ignore()
        if isinstance(value, SmtpError):
            return cls.reject(value)
        raise TypeError(f"Cannot turn {type(value).__name__} into a filter Action")


CONTINUE = Action.proceed()
IGNORE = Action.ignore()


class FilterStep(abc.ABC, Generic[M]):
    """A single pipeline step: given a mutable mail, produce an Action."""

    name: str = "step"

    @abc.abstractmethod
    def apply(self, mail: M) -> Action: ...


class FunctionStep(FilterStep[M]):
    """Step wrapping a plain callable whose return is coerced to an Action."""

    def __init__(self, func: Callable[[M], Any], name: str | None = None) -> None:
        self._func = func
        self.name = name or getattr(func, "__name__", type(self).name)

    def apply(self, mail: M) -> Action:
        try:
            result = self._func(mail)
        except SmtpError as exc:
            return Action.reject(exc)
        return Action.coerce(result)


class Filter(Generic[M]):
    """Named, ordered mail filter.

    Registration methods return the filter so calls can be chained::

        pipeline = (
            Filter("inbound")
            .and_then(require_known_sender)
            .map(lambda mail: mail.set_header("Subject", "[ext] " + mail.subject()))
        )
    """

    def __init__(self, name: str = "filter") -> None:
        self.name = name
        self._steps: list[FilterStep[M]] = []

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def steps(self) -> list[FilterStep[M]]:
        return list(self._steps)

    def add(self, step: FilterStep[M]) -> Filter[M]:
        self._steps.append(step)
        return self

    def filter(self, func: Callable[[M], Any], *, name: str | None = None) -> Filter[M]:
        """Add a step returning an Action or anything coercible to one.

        :meth:`and_then` and :meth:`map` are narrower forms that make the
        intent of a step clearer.
        """
        return self.add(FunctionStep(func, name))

    def and_then(
        self, func: Callable[[M], SmtpError | None], *, name: str | None = None
    ) -> Filter[M]:
        """Either continue or reject the mail.

        *func* returns None to continue; returning or raising an SmtpError
        rejects.
        """

        def guard(mail: M) -> Action:
            error = func(mail)
            return CONTINUE if error is None else Action.reject(error)

        return self.add(FunctionStep(guard, name or getattr(func, "__name__", None)))

    def map(self, func: Callable[[M], Any], *, name: str | None = None) -> Filter[M]:
        """Change the mail; always continues."""

        def mutate(mail: M) -> Action:
            func(mail)
            return CONTINUE

        return self.add(FunctionStep(mutate, name or getattr(func, "__name__", None)))

    def process(self, mail: M) -> MailParts:
        """Run every step over *mail* and return its final parts.

        Raises the rejecting step's SmtpError; its ``str()`` is the SMTP
        reply to relay.
        """
        rejection: SmtpError | None = None
        for idx, step in enumerate(self._steps, start=1):
            log = logger.bind(filter=self.name, step=idx, step_name=step.name)
            log.info("filter_step_started")
            action = step.apply(mail)

            if action.kind is ActionKind.CONTINUE:
                log.debug("filter_step_continue")
            elif action.kind is ActionKind.IGNORE:
                log.info("filter_step_ignored")
                return mail.into_parts()
            else:
                log.info("filter_step_rejected", error=str(action.error))
                rejection = action.error
                break

        logger.info("filter_complete", filter=self.name, rejected=rejection is not None)
        if rejection is not None:
            raise rejection

        parts = mail.into_parts()
        logger.info(
            "filter_accepted",
            filter=self.name,
            senders=len(parts.sender),
            recipients=len(parts.recipients),
        )
        return parts

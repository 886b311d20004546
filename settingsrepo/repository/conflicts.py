"""Conflict resolution for the settings repository.

A conflict is a path whose current (local) and incoming revisions disagree.
ConflictResolver picks a final revision for each path in a batch, either with
an automated ResolutionStrategy or by handing the whole batch to a
MergePresenter on the UI context, and reports resolved paths back to the
RevisionSource.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional, TypeVar

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from .config import RepositoryConfig
from .exceptions import ConflictBatchCancelled
from .manager import RepositoryManager
from .staged import StagedContent

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESET_TO_MY = "reset to my"


@dataclass
class ConflictCandidate:
    """Both revisions of a conflicted path. Either side may be absent."""

    current: Optional[bytes]
    incoming: Optional[bytes]


@dataclass
class Resolution:
    """Final content for a path; None means the path is deleted."""

    content: Optional[bytes]


class RevisionSource(ABC):
    """Supplies conflicting revisions and accepts resolution results."""

    @abstractmethod
    def load_revisions(self, path: str) -> ConflictCandidate:
        """Load the current and incoming revisions of ``path``."""

    @abstractmethod
    def apply_resolution(self, path: str, content: Optional[bytes]) -> None:
        """Store the chosen content for ``path`` (None deletes it)."""

    @abstractmethod
    def conflict_resolved(self, path: str) -> None:
        """Clear the conflict state of ``path``."""


class RepositoryRevisionSource(RevisionSource):
    """Revision source whose current side is a RepositoryManager.

    Incoming revisions are given as a mapping of path to content (None for a
    path deleted on the incoming side). Applying a resolution writes or
    deletes through the manager, so the index stays in sync.
    """

    def __init__(
        self, manager: RepositoryManager, incoming: Mapping[str, Optional[bytes]]
    ):
        self.manager = manager
        self.incoming = dict(incoming)
        self.pending = set(self.incoming)

    def load_revisions(self, path: str) -> ConflictCandidate:
        return ConflictCandidate(
            current=self.manager.read(path),
            incoming=self.incoming.get(path),
        )

    def apply_resolution(self, path: str, content: Optional[bytes]) -> None:
        if content is None:
            self.manager.delete(path)
        else:
            self.manager.write(path, content)

    def conflict_resolved(self, path: str) -> None:
        self.pending.discard(path)


def _decode(content: Optional[bytes]) -> Optional[str]:
    if content is None:
        return None
    return content.decode("utf-8", errors="replace")


class ResolutionStrategy(ABC):
    """Deterministic conflict resolution used when no operator is available."""

    @abstractmethod
    def choose(self, path: str, candidate: ConflictCandidate) -> Optional[Resolution]:
        """Pick the final content for ``path``.

        Returns:
            A Resolution, or None to leave the path unresolved
        """


class SentinelStrategy(ResolutionStrategy):
    """Keep whichever side consists of exactly the sentinel text.

    The current side is checked first. If neither side matches, the path is
    left unresolved.
    """

    def __init__(self, sentinel: str = RESET_TO_MY):
        self.sentinel = sentinel

    def choose(self, path: str, candidate: ConflictCandidate) -> Optional[Resolution]:
        if _decode(candidate.current) == self.sentinel:
            return Resolution(candidate.current)
        if _decode(candidate.incoming) == self.sentinel:
            return Resolution(candidate.incoming)
        return None


class PreferCurrentStrategy(ResolutionStrategy):
    """Always keep the current (local) revision."""

    def choose(self, path: str, candidate: ConflictCandidate) -> Optional[Resolution]:
        return Resolution(candidate.current)


class PreferIncomingStrategy(ResolutionStrategy):
    """Always take the incoming revision."""

    def choose(self, path: str, candidate: ConflictCandidate) -> Optional[Resolution]:
        return Resolution(candidate.incoming)


@dataclass
class MergeRequest:
    """One conflicted path as shown to an operator.

    ``current`` and ``incoming`` are staged, read-only copies of the two
    revisions. The operator's choice goes into ``result`` via ``accept``.
    """

    path: str
    current: StagedContent
    incoming: StagedContent
    result: StagedContent = field(init=False)
    deleted: bool = field(default=False, init=False)

    def __post_init__(self):
        self.result = StagedContent(self.path)

    def accept(self, content: Optional[bytes]) -> None:
        """Record the final content; None marks the path for deletion."""
        if content is None:
            self.deleted = True
        else:
            self.result.set_binary_content(content)

    @property
    def resolution(self) -> Optional[Resolution]:
        if self.deleted:
            return Resolution(None)
        if self.result.is_set:
            return Resolution(self.result.content)
        return None


class MergePresenter(ABC):
    """Human-facing merge surface for a batch of conflicts."""

    @abstractmethod
    def present(self, requests: list[MergeRequest]) -> list[str]:
        """Let the operator resolve the batch.

        Returns:
            Paths the operator resolved

        Raises:
            ConflictBatchCancelled: If the operator aborts the batch
        """


class ConsolePresenter(MergePresenter):
    """Ask the operator about each conflict on the terminal."""

    CHOICES = ["current", "incoming", "skip", "quit"]

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _render(self, content: Optional[bytes]) -> Text:
        text = _decode(content)
        if text is None:
            return Text("(absent)", style="dim")
        return Text(text)

    def present(self, requests: list[MergeRequest]) -> list[str]:
        resolved = []
        for request in requests:
            self.console.print(
                Panel(
                    self._render(request.current.content),
                    title=f"{request.path} (current)",
                    border_style="cyan",
                )
            )
            self.console.print(
                Panel(
                    self._render(request.incoming.content),
                    title=f"{request.path} (incoming)",
                    border_style="magenta",
                )
            )

            choice = Prompt.ask(
                f"Keep which revision of [bold]{request.path}[/bold]?",
                choices=self.CHOICES,
                default="current",
                console=self.console,
            )
            if choice == "quit":
                raise ConflictBatchCancelled(resolved=resolved)
            if choice == "skip":
                continue

            side = request.current if choice == "current" else request.incoming
            request.accept(side.content)
            resolved.append(request.path)

        return resolved


class UiDispatcher(ABC):
    """Runs work on the execution context that owns the user interface."""

    @abstractmethod
    def invoke_and_wait(self, fn: Callable[[], T]) -> T:
        """Run ``fn`` on the UI context and block until it returns."""


class ImmediateDispatcher(UiDispatcher):
    """The calling thread is the UI context."""

    def invoke_and_wait(self, fn: Callable[[], T]) -> T:
        return fn()


class EventLoopDispatcher(UiDispatcher):
    """An asyncio event loop running in another thread is the UI context.

    Calls made from the loop's own thread run inline.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, timeout: float | None = None):
        self.loop = loop
        self.timeout = timeout

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self.loop
        except RuntimeError:
            return False

    def invoke_and_wait(self, fn: Callable[[], T]) -> T:
        if self._on_loop_thread():
            return fn()

        async def call():
            return fn()

        future = asyncio.run_coroutine_threadsafe(call(), self.loop)
        return future.result(timeout=self.timeout)


class ConflictResolver:
    """Resolve batches of conflicted paths.

    Automated mode is used when ``headless`` is set (by default from
    ``SETTINGS_REPOSITORY_HEADLESS``) or no presenter is
    configured; it never touches the dispatcher.
    """

    def __init__(
        self,
        presenter: MergePresenter | None = None,
        strategy: ResolutionStrategy | None = None,
        dispatcher: UiDispatcher | None = None,
        headless: bool | None = None,
    ):
        self.presenter = presenter
        self.strategy = strategy or SentinelStrategy()
        self.dispatcher = dispatcher or ImmediateDispatcher()
        if headless is None:
            headless = RepositoryConfig.from_env().headless
        self.headless = headless

    @property
    def interactive(self) -> bool:
        return self.presenter is not None and not self.headless

    def resolve(self, paths: Iterable[str], revisions: RevisionSource) -> set[str]:
        """Resolve conflicts for ``paths``.

        Returns:
            The paths that were resolved; all others remain conflicted
        """
        ordered = list(dict.fromkeys(paths))
        if not ordered:
            return set()

        if self.interactive:
            resolved = self._resolve_interactive(ordered, revisions)
        else:
            resolved = self._resolve_automated(ordered, revisions)

        logger.info(f"Resolved {len(resolved)} of {len(ordered)} conflicts")
        return resolved

    def _resolve_automated(
        self, paths: list[str], revisions: RevisionSource
    ) -> set[str]:
        resolved = set()
        for path in paths:
            candidate = revisions.load_revisions(path)
            resolution = self.strategy.choose(path, candidate)
            if resolution is None:
                logger.warning(f"Conflict left unresolved: {path}")
                continue

            revisions.apply_resolution(path, resolution.content)
            revisions.conflict_resolved(path)
            resolved.add(path)

        return resolved

    def _resolve_interactive(
        self, paths: list[str], revisions: RevisionSource
    ) -> set[str]:
        requests = {}
        for path in paths:
            candidate = revisions.load_revisions(path)
            requests[path] = MergeRequest(
                path=path,
                current=StagedContent(path, candidate.current),
                incoming=StagedContent(path, candidate.incoming),
            )

        batch = list(requests.values())
        try:
            processed = self.dispatcher.invoke_and_wait(
                lambda: self.presenter.present(batch)
            )
        except ConflictBatchCancelled as e:
            logger.warning(
                f"Conflict resolution cancelled after {len(e.resolved)} "
                f"of {len(paths)} paths"
            )
            processed = e.resolved

        resolved = set()
        for path in processed:
            request = requests.get(path)
            if request is None:
                logger.warning(f"Presenter returned unknown path: {path}")
                continue

            resolution = request.resolution
            if resolution is not None:
                revisions.apply_resolution(path, resolution.content)
            revisions.conflict_resolved(path)
            resolved.add(path)

        return resolved


def resolve_conflicts(
    paths: Iterable[str], revisions: RevisionSource, **kwargs
) -> set[str]:
    """Resolve ``paths`` with a ConflictResolver built from ``kwargs``."""
    return ConflictResolver(**kwargs).resolve(paths, revisions)

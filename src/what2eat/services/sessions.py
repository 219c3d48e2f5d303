"""Driver that runs the suggestion wizard against the generation services."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date

from what2eat.domain.preferences import UserPreferenceProfile
from what2eat.domain.recipes import SaveOutcome
from what2eat.domain.sessions import (
    Back,
    Close,
    Failed,
    GeneratingRecipe,
    GeneratingSuggestions,
    GenerationFailed,
    Initial,
    PickSuggestion,
    RecipeCompleted,
    RequestMoreSuggestions,
    Retry,
    Save,
    SaveFinished,
    Saving,
    SessionEvent,
    SessionState,
    SuggestionsReady,
    exclude_names_of,
    is_generating,
    transition,
)
from what2eat.errors import AuthenticationError, GenerationError, InvalidTransitionError
from what2eat.services.generation import TextStream
from what2eat.services.recipes import RecipeSaveService
from what2eat.services.suggestions import SuggestionService

_logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]


@dataclass
class SuggestionSessionDriver:
    """Owns one wizard session and performs the work of its generating states.

    Results that arrive after the user navigated away are discarded: the
    driver only feeds a result back when the state that started the work is
    still current.
    """

    user_id: str | None
    suggestion_service: SuggestionService
    save_service: RecipeSaveService
    profile: UserPreferenceProfile | None = None
    state: SessionState = field(default_factory=Initial)
    _stream: TextStream | None = field(default=None, init=False, repr=False)
    _partial: list[str] = field(default_factory=list, init=False, repr=False)

    @property
    def partial_text(self) -> str:
        """Return the recipe text received so far."""
        return "".join(self._partial)

    @property
    def shown_names(self) -> frozenset[str]:
        """Return the meal names already shown in this session."""
        return exclude_names_of(self.state)

    def dispatch(self, event: SessionEvent) -> SessionState:
        """Apply a user event."""
        self.state = transition(self.state, event)
        return self.state

    async def run_suggestions(self) -> SessionState:
        """Generate the batch for the current ``GeneratingSuggestions`` state."""
        started = self.state
        if not isinstance(started, GeneratingSuggestions):
            raise InvalidTransitionError(
                f"Not generating suggestions in {type(started).__name__}"
            )
        try:
            batch = await self.suggestion_service.get_suggestions(
                started.draft, profile=self.profile
            )
        except GenerationError as exc:
            if self.state is started:
                _logger.warning("Suggestion generation failed: %s", exc)
                self.dispatch(GenerationFailed(str(exc)))
            return self.state
        if self.state is started:
            self.dispatch(SuggestionsReady(tuple(batch)))
        return self.state

    async def run_recipe(self, on_chunk: ChunkCallback | None = None) -> SessionState:
        """Stream the recipe for the current ``GeneratingRecipe`` state."""
        started = self.state
        if not isinstance(started, GeneratingRecipe):
            raise InvalidTransitionError(
                f"Not generating a recipe in {type(started).__name__}"
            )
        stream = self.suggestion_service.get_full_recipe(
            started.draft, started.meal, self.profile
        )
        parts: list[str] = []
        self._stream = stream
        self._partial = parts
        try:
            async for chunk in stream:
                if self.state is not started:
                    break
                parts.append(chunk)
                if on_chunk is not None:
                    on_chunk(chunk)
        except GenerationError as exc:
            if self.state is started:
                _logger.warning("Recipe generation failed: %s", exc)
                self.dispatch(GenerationFailed(str(exc)))
            return self.state
        finally:
            if self._stream is stream:
                self._stream = None
            if self._partial is parts:
                self._partial = []
            await stream.aclose()

        text = "".join(parts)
        if self.state is not started:
            return self.state
        if not text.strip():
            return self.dispatch(GenerationFailed("Model returned an empty recipe"))
        return self.dispatch(RecipeCompleted(text))

    async def request_more(self) -> SessionState:
        """Ask for a different batch; shown names stay excluded."""
        self.dispatch(RequestMoreSuggestions())
        return await self.run_suggestions()

    async def pick(
        self, index: int, on_chunk: ChunkCallback | None = None
    ) -> SessionState:
        """Pick a suggestion and stream its recipe."""
        self.dispatch(PickSuggestion(index))
        return await self.run_recipe(on_chunk)

    async def retry(self, on_chunk: ChunkCallback | None = None) -> SessionState:
        """Re-run the generation that failed."""
        if not isinstance(self.state, Failed):
            raise InvalidTransitionError("Nothing to retry")
        self.dispatch(Retry())
        if isinstance(self.state, GeneratingSuggestions):
            return await self.run_suggestions()
        return await self.run_recipe(on_chunk)

    def back(self) -> SessionState:
        """Go back one step, cancelling any in-flight stream."""
        self._cancel_stream()
        return self.dispatch(Back())

    def close(self) -> SessionState:
        """Discard the session without saving anything."""
        self._cancel_stream()
        return self.dispatch(Close())

    def save(self, meal_type: str, plan_date: date | None = None) -> SaveOutcome:
        """Persist the ready recipe and close the session when a recipe id exists."""
        if not self.user_id:
            raise AuthenticationError("Not authenticated")
        ready = self.state
        self.dispatch(Save(meal_type=meal_type, plan_date=plan_date))
        saving = self.state
        if not isinstance(saving, Saving):
            raise InvalidTransitionError(f"Cannot save in {type(ready).__name__}")
        try:
            outcome = self.save_service.save_recipe(
                self.user_id,
                saving.meal,
                saving.recipe_text,
                saving.meal_type,
                saving.plan_date,
                servings=saving.draft.portions,
            )
        except Exception:
            self.state = ready
            raise
        self.dispatch(SaveFinished(outcome))
        return outcome

    def _cancel_stream(self) -> None:
        if self._stream is not None and is_generating(self.state):
            self._stream.cancel()
        self._stream = None
        self._partial = []

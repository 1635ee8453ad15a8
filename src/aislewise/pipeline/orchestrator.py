"""Escalating generation pipeline that always returns a usable shopping list.

Attempts run strictly in sequence through the stages below, each tried only when the
previous one produced nothing usable::

    FAST (attempt 1..N) -> CLEANUP -> RELIABLE -> FALLBACK

Raw text from FAST and CLEANUP goes through clean -> parse -> normalize; RELIABLE asks the
provider for structured output and skips the cleaner. FALLBACK is a static placeholder
list, so :meth:`ShoppingListGenerator.generate` has no failure path beyond input
validation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Callable, Generic, List, Optional, Sequence, TypeVar

from aislewise import metrics
from aislewise.config import Settings
from aislewise.llm.interface import ModelClient, UpstreamTransportError
from aislewise.models.shopping import (
    GenerationResult,
    Ingredient,
    IngredientListResult,
    ShoppingList,
)
from aislewise.pipeline import prompts
from aislewise.pipeline.aisles import PANTRY, PRODUCE, empty_shopping_list
from aislewise.pipeline.cleaner import clean, extract_array
from aislewise.pipeline.normalizer import coerce_ingredients, has_valid_items, normalize
from aislewise.pipeline.parser import ParseError, parse

logger = logging.getLogger(__name__)

MAX_RECIPE_NAME_LENGTH = 200
PLACEHOLDER_QUANTITY = "as needed"
UNCATEGORIZED_AISLE = "Uncategorized"
FALLBACK_MODEL_LABEL = "static-fallback"

T = TypeVar("T")


class RecipeValidationError(ValueError):
    """Raised when the caller supplies nothing to generate a list for."""


class EmptyResultError(ValueError):
    """Raised when a response parses but yields no usable items."""


class Stage(str, Enum):
    FAST = "fast"
    CLEANUP = "cleanup"
    RELIABLE = "reliable"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class Attempt:
    """One model call in the escalation plan."""

    stage: Stage
    model: str
    temperature: float
    max_tokens: int
    number: int = 1
    structured_output: bool = False

    @property
    def label(self) -> str:
        if self.stage is Stage.FAST:
            return f"{self.model} (attempt {self.number})"
        if self.stage is Stage.CLEANUP:
            return f"{self.model} (cleanup)"
        return self.model


@dataclass(frozen=True)
class GenerationPolicy:
    """Models and sampling parameters for each escalation stage."""

    fast_model: str
    reliable_model: str
    fast_attempts: int = 3
    fast_temperature: float = 0.1
    fast_temperature_step: float = 0.1
    fast_max_tokens: int = 500
    reliable_temperature: float = 0.2
    reliable_max_tokens: int = 800
    call_timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationPolicy":
        return cls(
            fast_model=settings.fast_model,
            reliable_model=settings.reliable_model,
            fast_attempts=settings.fast_attempts,
            fast_temperature=settings.fast_temperature,
            fast_temperature_step=settings.fast_temperature_step,
            fast_max_tokens=settings.fast_max_tokens,
            reliable_temperature=settings.reliable_temperature,
            reliable_max_tokens=settings.reliable_max_tokens,
            call_timeout=settings.llm_timeout,
        )

    def attempts(self) -> List[Attempt]:
        """Return the ordered model calls, excluding the static fallback."""

        plan = [
            Attempt(
                stage=Stage.FAST,
                model=self.fast_model,
                temperature=round(
                    min(1.0, self.fast_temperature + self.fast_temperature_step * index), 3
                ),
                max_tokens=self.fast_max_tokens,
                number=index + 1,
            )
            for index in range(max(1, self.fast_attempts))
        ]
        plan.append(
            Attempt(
                stage=Stage.CLEANUP,
                model=self.fast_model,
                temperature=self.fast_temperature,
                max_tokens=self.fast_max_tokens,
            )
        )
        plan.append(
            Attempt(
                stage=Stage.RELIABLE,
                model=self.reliable_model,
                temperature=self.reliable_temperature,
                max_tokens=self.reliable_max_tokens,
                structured_output=True,
            )
        )
        return plan


@dataclass(frozen=True)
class _Job(Generic[T]):
    noun: str
    subject: str
    prompt: str
    structured_prompt: str
    cleanup_prompt: Callable[[str], str]
    interpret: Callable[[str, bool], T]
    fallback: Callable[[], T]


@dataclass(frozen=True)
class _Outcome(Generic[T]):
    value: T
    model_used: str
    response_time_ms: int
    warning: Optional[str] = None


def validate_recipe_name(recipe_name: Optional[str]) -> str:
    """Return the trimmed recipe name or raise :class:`RecipeValidationError`."""

    name = recipe_name.strip() if isinstance(recipe_name, str) else ""
    if not name:
        raise RecipeValidationError("Recipe name is required")
    if len(name) > MAX_RECIPE_NAME_LENGTH:
        raise RecipeValidationError(
            f"Recipe name must be at most {MAX_RECIPE_NAME_LENGTH} characters"
        )
    return name


def fallback_shopping_list(recipe_name: str) -> ShoppingList:
    """Placeholder list used when no model produced anything usable."""

    shopping_list = empty_shopping_list()
    shopping_list[PRODUCE] = [
        Ingredient(ingredient=f"Fresh produce for {recipe_name}", quantity=PLACEHOLDER_QUANTITY)
    ]
    shopping_list[PANTRY] = [
        Ingredient(ingredient=f"Pantry staples for {recipe_name}", quantity=PLACEHOLDER_QUANTITY)
    ]
    return shopping_list


def _interpret_shopping_list(raw: str, structured: bool) -> ShoppingList:
    text = raw.strip() if structured else clean(raw)
    shopping_list = normalize(parse(text))
    if not has_valid_items(shopping_list):
        raise EmptyResultError("Response contained no usable ingredients")
    return shopping_list


def _interpret_ingredients(raw: str, structured: bool) -> List[Ingredient]:
    text = raw.strip() if structured else extract_array(raw)
    ingredients = coerce_ingredients(parse(text))
    if not ingredients:
        raise EmptyResultError("Response contained no usable ingredients")
    return ingredients


def _preview(text: str, limit: int = 500) -> str:
    flattened = text.strip().replace("\n", " ")
    if len(flattened) > limit:
        return flattened[:limit] + "...(truncated)"
    return flattened


class ShoppingListGenerator:
    """Run the escalation plan against an injected model client."""

    def __init__(self, client: ModelClient, policy: GenerationPolicy) -> None:
        self._client = client
        self._policy = policy

    @property
    def policy(self) -> GenerationPolicy:
        return self._policy

    async def generate(self, recipe_name: str) -> GenerationResult:
        """Return an aisle-grouped shopping list for ``recipe_name``."""

        name = validate_recipe_name(recipe_name)
        prompt = prompts.shopping_list_prompt(name)
        outcome = await self._run(
            _Job(
                noun="shopping list",
                subject=name,
                prompt=prompt,
                structured_prompt=prompt,
                cleanup_prompt=prompts.cleanup_prompt,
                interpret=_interpret_shopping_list,
                fallback=lambda: fallback_shopping_list(name),
            )
        )
        return GenerationResult(
            organized_ingredients=outcome.value,
            model_used=outcome.model_used,
            response_time_ms=outcome.response_time_ms,
            warning=outcome.warning,
        )

    async def organize(self, ingredients: Sequence[Ingredient]) -> GenerationResult:
        """Group an existing ingredient list by aisle."""

        items = list(ingredients)
        if not items:
            raise RecipeValidationError("At least one ingredient is required")
        prompt = prompts.organize_prompt(items)

        def _fallback() -> ShoppingList:
            shopping_list = empty_shopping_list()
            shopping_list[UNCATEGORIZED_AISLE] = items
            return shopping_list

        outcome = await self._run(
            _Job(
                noun="aisle grouping",
                subject=f"{len(items)} ingredient(s)",
                prompt=prompt,
                structured_prompt=prompt,
                cleanup_prompt=prompts.cleanup_prompt,
                interpret=_interpret_shopping_list,
                fallback=_fallback,
            )
        )
        return GenerationResult(
            organized_ingredients=outcome.value,
            model_used=outcome.model_used,
            response_time_ms=outcome.response_time_ms,
            warning=outcome.warning,
        )

    async def list_ingredients(self, recipe_name: str) -> IngredientListResult:
        """Return the flat ingredient list for ``recipe_name``."""

        name = validate_recipe_name(recipe_name)
        outcome = await self._run(
            _Job(
                noun="ingredient list",
                subject=name,
                prompt=prompts.ingredients_prompt(name),
                structured_prompt=prompts.structured_ingredients_prompt(name),
                cleanup_prompt=prompts.ingredients_cleanup_prompt,
                interpret=_interpret_ingredients,
                fallback=lambda: [
                    Ingredient(ingredient=f"Ingredients for {name}", quantity=PLACEHOLDER_QUANTITY)
                ],
            )
        )
        return IngredientListResult(
            ingredients=outcome.value,
            model_used=outcome.model_used,
            response_time_ms=outcome.response_time_ms,
            warning=outcome.warning,
        )

    async def _run(self, job: _Job[T]) -> _Outcome[T]:
        started = perf_counter()
        last_raw: Optional[str] = None

        for attempt in self._policy.attempts():
            if attempt.stage is Stage.CLEANUP:
                if last_raw is None:
                    logger.warning(
                        "Skipping cleanup for %s %r: no response to reformat",
                        job.noun,
                        job.subject,
                    )
                    metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="skipped").inc()
                    continue
                prompt = job.cleanup_prompt(last_raw)
            elif attempt.stage is Stage.RELIABLE:
                prompt = job.structured_prompt
            else:
                prompt = job.prompt

            raw = await self._call(attempt, prompt)
            if raw is None:
                continue
            last_raw = raw

            extra = _log_extra(attempt)
            try:
                value = job.interpret(raw, attempt.structured_output)
            except ParseError as exc:
                logger.warning("%s returned unparsable output: %s", attempt.label, exc, extra=extra)
                metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="parse_error").inc()
                continue
            except EmptyResultError as exc:
                logger.warning("%s returned no usable items: %s", attempt.label, exc, extra=extra)
                metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="empty").inc()
                continue

            metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="success").inc()
            metrics.GENERATION_RESULTS.labels(stage=attempt.stage.value).inc()
            elapsed_ms = _elapsed_ms(started)
            logger.info(
                "Generated %s for %r with %s in %sms",
                job.noun,
                job.subject,
                attempt.label,
                elapsed_ms,
                extra=extra,
            )
            return _Outcome(
                value=value,
                model_used=attempt.label,
                response_time_ms=elapsed_ms,
                warning=_stage_warning(attempt, job.noun),
            )

        logger.error(
            "All generation stages failed for %s %r; returning static fallback",
            job.noun,
            job.subject,
            extra={"stage": Stage.FALLBACK.value},
        )
        metrics.GENERATION_RESULTS.labels(stage=Stage.FALLBACK.value).inc()
        return _Outcome(
            value=job.fallback(),
            model_used=FALLBACK_MODEL_LABEL,
            response_time_ms=_elapsed_ms(started),
            warning=(
                f"Both the fast and fallback models failed to produce a {job.noun}; "
                "showing placeholder guidance instead."
            ),
        )

    async def _call(self, attempt: Attempt, prompt: str) -> Optional[str]:
        extra = _log_extra(attempt)
        logger.debug(
            "Calling %s temperature=%s structured=%s",
            attempt.label,
            attempt.temperature,
            attempt.structured_output,
            extra=extra,
        )
        try:
            raw = await asyncio.wait_for(
                self._client.generate(
                    attempt.model,
                    prompt,
                    max_output_tokens=attempt.max_tokens,
                    temperature=attempt.temperature,
                    structured_output=attempt.structured_output,
                ),
                timeout=self._policy.call_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "%s timed out after %.1fs", attempt.label, self._policy.call_timeout, extra=extra
            )
            metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="timeout").inc()
            return None
        except UpstreamTransportError as exc:
            logger.warning("%s failed: %s", attempt.label, exc, extra=extra)
            metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="transport_error").inc()
            return None
        except Exception:
            logger.exception("Unexpected model client failure for %s", attempt.label, extra=extra)
            metrics.GENERATION_ATTEMPTS.labels(stage=attempt.stage.value, outcome="error").inc()
            return None

        logger.debug("Raw response from %s: %s", attempt.label, _preview(raw), extra=extra)
        return raw


def _log_extra(attempt: Attempt) -> dict[str, object]:
    return {"stage": attempt.stage.value, "model": attempt.model, "attempt": attempt.number}


def _elapsed_ms(started: float) -> int:
    return int(round((perf_counter() - started) * 1000))


def _stage_warning(attempt: Attempt, noun: str) -> Optional[str]:
    if attempt.stage is Stage.CLEANUP:
        return f"The first responses were malformed; the {noun} was recovered by a cleanup pass."
    if attempt.stage is Stage.RELIABLE:
        return f"The fast model failed; the {noun} was generated by the fallback model {attempt.model}."
    return None


def build_generator(client: ModelClient, settings: Settings) -> ShoppingListGenerator:
    return ShoppingListGenerator(client, GenerationPolicy.from_settings(settings))


__all__ = [
    "Attempt",
    "EmptyResultError",
    "GenerationPolicy",
    "RecipeValidationError",
    "ShoppingListGenerator",
    "Stage",
    "build_generator",
    "fallback_shopping_list",
    "validate_recipe_name",
]

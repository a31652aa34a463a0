"""
Evaluator selection.

Both strategies share one call contract:

    evaluator(question, determinations, challenge_results, options=..., verbose=..., **kwargs)
        -> (list[WorkerEvaluation], UsageStats)

and produce integers in [0, 100] for every dimension. The pipeline picks
one by name from options.evaluator.
"""

from typing import Callable

from models.options import ResolutionOptions
from resolver.evaluate_heuristic import evaluate_heuristic
from resolver.evaluate_llm import evaluate_with_llm

EVALUATORS: dict[str, Callable] = {
    "heuristic": evaluate_heuristic,
    "llm": evaluate_with_llm,
}


def get_evaluator(name: str) -> Callable:
    """Look up a scoring strategy by name."""
    try:
        return EVALUATORS[name]
    except KeyError:
        raise ValueError(f"Unknown evaluator {name!r}; expected one of {sorted(EVALUATORS)}") from None


def evaluate_workers(
    question: str,
    determinations,
    challenge_results,
    options: ResolutionOptions = None,
    verbose: bool = True,
    **kwargs,
):
    """Run the configured scoring strategy."""
    options = options or ResolutionOptions.from_settings()
    evaluator = get_evaluator(options.evaluator)
    return evaluator(
        question,
        determinations,
        challenge_results,
        options=options,
        verbose=verbose,
        **kwargs,
    )

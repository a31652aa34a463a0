"""
Score workers with a language model.

Functions for pipeline:
    evaluate_with_llm(question, determinations, challenge_results) -> (list[WorkerEvaluation], UsageStats)

All workers go to the model in one batched call. The model returns eight
0-100 dimensions per worker, which are clamped and folded into the three
on-chain dimensions with fixed weights. A worker the model forgot gets the
neutral default instead of failing the run.
"""

import json
import re
import time
from typing import Optional

from openai import OpenAI
from pydantic import ValidationError

from config.settings import settings
from models.determination import ChallengeResult, Determination
from models.evaluation import LLMEvaluationResponse, LLMWorkerScores, WorkerEvaluation
from models.options import ResolutionOptions
from resolver.cost_tracker import UsageStats
from resolver.errors import EvaluationError
from resolver.scoring import clamp_score, round_half_up, short_address

# =============================================================================
# RUBRIC
# =============================================================================

SYSTEM_PROMPT = """You are an impartial evaluator for a decentralized prediction market resolution system.

You will receive a market question, and for each worker agent: their determination (YES/NO), confidence level, evidence, sources, challenge questions they received, and their defense responses.

Score each worker on these 8 dimensions (0-100 each):

1. resolution_quality: Correctness of determination relative to evidence presented, calibration of confidence level
2. source_quality: Diversity, reliability, and relevance of cited sources
3. analysis_depth: Thoroughness of evidence, nuance, and detail level
4. reasoning_clarity: Structure of arguments, logical flow, coherence
5. evidence_strength: Factual backing, verifiability of claims made
6. bias_awareness: Acknowledgment of uncertainty, addressing counterarguments
7. timeliness: Recency of sources, use of current data
8. collaboration: Quality of challenge responses, depth of engagement

Return ONLY raw JSON, no markdown fences, no extra text. Use this exact structure:
{
  "workers": [
    {
      "worker_address": "0x...",
      "resolution_quality": 0-100,
      "source_quality": 0-100,
      "analysis_depth": 0-100,
      "reasoning_clarity": 0-100,
      "evidence_strength": 0-100,
      "bias_awareness": 0-100,
      "timeliness": 0-100,
      "collaboration": 0-100
    }
  ]
}"""

# 8 -> 3 aggregation: (dimension, weight) per on-chain score
ON_CHAIN_WEIGHTS = {
    "resolution_quality": (("resolution_quality", 20), ("reasoning_clarity", 15), ("evidence_strength", 10)),
    "source_quality": (("source_quality", 15), ("timeliness", 10)),
    "analysis_depth": (("analysis_depth", 15), ("bias_awareness", 10), ("collaboration", 5)),
}

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?([\s\S]*?)\n?\s*```$")


# =============================================================================
# INTERNAL FUNCTIONS
# =============================================================================

def build_user_prompt(
    question: str,
    determinations: list[Determination],
    challenge_results: list[ChallengeResult],
) -> str:
    """Build the per-market prompt listing every worker's case."""
    challenge_map = {cr.worker_address.lower(): cr for cr in challenge_results}

    sections = []
    for i, det in enumerate(determinations):
        cr = challenge_map.get(det.worker_address.lower())
        if cr and cr.challenges:
            lines = []
            for j, challenge in enumerate(cr.challenges):
                answer = cr.responses[j] if j < len(cr.responses) else "(no response)"
                lines.append(f"  Challenge {j + 1}: {challenge}\n  Response {j + 1}: {answer}")
            challenge_section = "\n".join(lines)
        else:
            challenge_section = "  (no challenges)"

        sources = ", ".join(det.sources) if det.sources else "(none)"
        sections.append(f"""--- Worker {i + 1} ---
Address: {det.worker_address}
Determination: {det.label}
Confidence: {det.confidence * 100:.0f}%
Evidence: {det.evidence}
Sources: {sources}
Challenges & Responses:
{challenge_section}""")

    workers_text = "\n\n".join(sections)
    return f"""Market Question: "{question}"

{workers_text}

Evaluate each worker on all 8 dimensions. Return JSON only."""


def clean_json_content(raw: str) -> str:
    """Strip markdown fences the model may wrap around JSON output."""
    trimmed = raw.strip()
    match = _FENCE_RE.match(trimmed)
    return match.group(1).strip() if match else trimmed


def aggregate_to_on_chain(scores: LLMWorkerScores) -> tuple[int, int, int]:
    """Clamp the eight dimensions and fold them into (resQ, srcQ, depth)."""
    clamped = {
        name: clamp_score(getattr(scores, name))
        for name in LLMWorkerScores.model_fields
        if name != "worker_address"
    }

    result = []
    for parts in ON_CHAIN_WEIGHTS.values():
        total_weight = sum(weight for _, weight in parts)
        weighted = sum(clamped[name] * weight for name, weight in parts)
        result.append(round_half_up(weighted / total_weight))
    return tuple(result)


def parse_llm_response(content: str, verbose: bool = True) -> LLMEvaluationResponse:
    """
    Parse the model's reply.

    Each workers[] entry is validated on its own. An entry with a missing or
    non-numeric dimension is dropped, so that worker falls back to the
    neutral default instead of failing the batch.

    Raises:
        EvaluationError: empty reply, invalid JSON, or missing workers array
    """
    if not content or not content.strip():
        raise EvaluationError("LLM returned empty response")

    cleaned = clean_json_content(content)
    try:
        raw = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise EvaluationError(f"Failed to parse LLM JSON response: {cleaned[:200]}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get("workers"), list):
        raise EvaluationError(f"LLM response has no workers array: {cleaned[:200]}")

    workers = []
    for entry in raw["workers"]:
        try:
            workers.append(LLMWorkerScores.model_validate(entry))
        except ValidationError as e:
            if verbose:
                address = entry.get("worker_address", "?") if isinstance(entry, dict) else "?"
                print(f"   ⚠️  Dropping unusable LLM scores for {address}: {e.error_count()} invalid field(s)")

    return LLMEvaluationResponse(workers=workers)


def _call_chat_api(
    client: OpenAI,
    system_prompt: str,
    user_prompt: str,
    options: ResolutionOptions,
    usage_stats: UsageStats,
    verbose: bool = True,
) -> str:
    """Call Chat Completions once and return the message text."""
    response = client.chat.completions.create(
        model=options.evaluation_model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        temperature=0,
        max_tokens=options.llm_max_tokens,
        timeout=options.llm_timeout,
    )
    usage_stats.requests += 1

    if getattr(response, "usage", None):
        cost = usage_stats.add_chat_usage(response.usage, options.evaluation_model)
        if verbose:
            print(f"    📊 Usage: {usage_stats.input_tokens:,} input + {usage_stats.output_tokens:,} output "
                  f"[{usage_stats.format_cost(cost)}]")

    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


def _is_transient(error: Exception) -> bool:
    error_str = str(error).lower()
    return (
        "429" in error_str
        or "rate_limit" in error_str
        or "connection" in error_str
        or "timeout" in error_str
        or "timed out" in error_str
    )


def _request_scores(
    client: OpenAI,
    user_prompt: str,
    options: ResolutionOptions,
    usage_stats: UsageStats,
    verbose: bool,
    sleep=time.sleep,
) -> str:
    """Retry loop with exponential backoff on rate limits and connection errors."""
    for attempt in range(options.llm_max_retries):
        try:
            return _call_chat_api(client, SYSTEM_PROMPT, user_prompt, options, usage_stats, verbose)
        except Exception as e:
            if verbose:
                print(f"    ❌ Error type: {type(e).__name__}")
                print(f"    ❌ Error message: {e}")

            if _is_transient(e) and attempt < options.llm_max_retries - 1:
                wait_time = 10 * (2 ** attempt)
                if verbose:
                    print(f"    ⏳ Transient error. Waiting {wait_time}s...")
                sleep(wait_time)
                continue

            raise EvaluationError(f"LLM request failed: {type(e).__name__}: {e}") from e

    raise EvaluationError("LLM request failed after retries")


def _make_client(options: ResolutionOptions) -> OpenAI:
    api_key = settings.llm_api_key
    if not api_key:
        raise EvaluationError("LLM_API_KEY not found in environment")
    return OpenAI(api_key=api_key, base_url=settings.llm_base_url, timeout=options.llm_timeout)


# =============================================================================
# PUBLIC API (for pipeline use)
# =============================================================================

def evaluate_with_llm(
    question: str,
    determinations: list[Determination],
    challenge_results: list[ChallengeResult],
    options: ResolutionOptions = None,
    client: Optional[OpenAI] = None,
    verbose: bool = True,
    sleep=time.sleep,
) -> tuple[list[WorkerEvaluation], UsageStats]:
    """
    Score every worker in one batched model call.

    Args:
        question: Market question text
        determinations: Worker determinations to score
        challenge_results: Challenges and defenses per worker
        options: Model name, token cap, retries, neutral default
        client: Optional OpenAI client (created from settings if not provided)
        verbose: Print progress
        sleep: Backoff sleep function (overridable in tests)

    Returns:
        Tuple of (evaluations in determination order, UsageStats with cost info)

    Raises:
        EvaluationError: request failed after retries, or reply unusable
    """
    options = options or ResolutionOptions.from_settings()
    client = client or _make_client(options)
    usage_stats = UsageStats()

    if verbose:
        print(f"    🔧 Using MODEL={options.evaluation_model} for {len(determinations)} workers")

    user_prompt = build_user_prompt(question, determinations, challenge_results)
    content = _request_scores(client, user_prompt, options, usage_stats, verbose, sleep)
    parsed = parse_llm_response(content, verbose)

    score_map = {w.worker_address.lower(): w for w in parsed.workers}
    neutral = options.llm_neutral_score

    evaluations = []
    for det in determinations:
        scores = score_map.get(det.worker_address.lower())

        if scores is None:
            if verbose:
                print(f"   ⚠️  LLM did not return scores for {short_address(det.worker_address)}, using defaults")
            evaluations.append(WorkerEvaluation(
                worker_address=det.worker_address,
                quality_score=neutral,
                resolution_quality=neutral,
                source_quality=neutral,
                analysis_depth=neutral,
            ))
            continue

        resolution_quality, source_quality, analysis_depth = aggregate_to_on_chain(scores)
        quality_score = round_half_up((resolution_quality + source_quality + analysis_depth) / 3)

        evaluations.append(WorkerEvaluation(
            worker_address=det.worker_address,
            quality_score=quality_score,
            resolution_quality=resolution_quality,
            source_quality=source_quality,
            analysis_depth=analysis_depth,
        ))
        if verbose:
            print(f"   {short_address(det.worker_address)}: resQ={resolution_quality} "
                  f"srcQ={source_quality} depth={analysis_depth} (overall={quality_score})")

    if verbose:
        print(f"   LLM evaluation complete for {len(evaluations)} workers")
        print(f"   💰 {usage_stats.summary()}")

    return evaluations, usage_stats

"""
Cost tracking for LLM evaluation calls.

Tracks token usage and estimates costs for the OpenAI-compatible evaluator.
The heuristic evaluator reports an empty UsageStats.
"""

from dataclasses import dataclass

from config.settings import settings


@dataclass
class UsageStats:
    """Accumulated usage statistics."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    requests: int = 0
    estimated_cost: float = 0.0

    def add_chat_usage(self, usage, model: str) -> float:
        """Add usage from a chat completion response's usage object."""
        input_tok = getattr(usage, "prompt_tokens", 0) or 0
        output_tok = getattr(usage, "completion_tokens", 0) or 0
        total_tok = getattr(usage, "total_tokens", 0) or (input_tok + output_tok)

        self.input_tokens += input_tok
        self.output_tokens += output_tok
        self.total_tokens += total_tok

        pricing = settings.get_model_config(model)["pricing"]
        cost = (input_tok * pricing["input"] + output_tok * pricing["output"]) / 1_000_000
        self.estimated_cost += cost

        return cost

    def format_cost(self, cost: float) -> str:
        """Format cost for display."""
        if cost < 0.01:
            return f"${cost:.4f}"
        return f"${cost:.3f}"

    def summary(self) -> str:
        """Return a summary string."""
        return (
            f"Requests: {self.requests} | "
            f"Tokens: {self.total_tokens:,} ({self.input_tokens:,} in, {self.output_tokens:,} out) | "
            f"Cost: {self.format_cost(self.estimated_cost)}"
        )

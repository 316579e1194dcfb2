from dataclasses import dataclass

from gateway import config

CHEAP_TIER = "CheapModel"
EXPENSIVE_TIER = "ExpensiveModel"
TIERS = (CHEAP_TIER, EXPENSIVE_TIER)


@dataclass(frozen=True)
class RoutingDecision:
    endpoint: str
    tier: str
    cost_per_char: float

    def estimate_cost(self, prompt_length: int) -> float:
        # an estimate of what the backend will bill, not a ledger of real spend
        return prompt_length * self.cost_per_char


def route(prompt_length: int) -> RoutingDecision:
    """
    Pick the model endpoint for a request of the given prompt size.

    Why prompt size:
    - It is known before we pay for anything, straight from the request body.
    - Short prompts (greetings, one-liners) rarely need the large model.
    - It costs one pass over the messages, no tokenizer needed.

    Args:
        prompt_length (int): summed length of user message content

    Returns:
        RoutingDecision: endpoint, tier label and per-character rate.
            The threshold is inclusive: exactly 150 still goes cheap.
    """
    if prompt_length <= config.PROMPT_LENGTH_THRESHOLD:
        return RoutingDecision(config.CHEAP_MODEL_URL, CHEAP_TIER, config.CHEAP_COST_PER_CHAR)
    return RoutingDecision(config.EXPENSIVE_MODEL_URL, EXPENSIVE_TIER, config.EXPENSIVE_COST_PER_CHAR)

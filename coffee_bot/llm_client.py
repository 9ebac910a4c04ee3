import json
import logging
from typing import Any, Dict, List, Literal, Optional, get_args

from openai import OpenAI, OpenAIError
from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from .config import OPENAI_MODEL, OPENAI_TEMPERATURE, get_openai_api_key
from .errors import OracleError, OracleResponseError

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------------------
# Prompts
# --------------------------------------------------------------------------------------

Action = Literal[
    "ask_size",
    "ask_temperature",
    "ask_milk",
    "ask_modifications",
    "add_item",
    "finalize_order",
    "invalid_request",
]
ACTIONS = get_args(Action)

CONVERSATION_SYSTEM_PROMPT_BASE = """
You are a friendly NYC coffee shop cashier taking an order at the counter.
Be conversational but efficient - this is a busy shop. Keep replies to one or two short sentences.

You work on ONE item at a time. The item being clarified is the PENDING ITEM.
Items already confirmed are listed under ORDER SO FAR.

Rules:
- Only sell items that appear in MENU. If the customer asks for something that is not
  on the menu, politely say so, suggest alternatives from MENU, and use action "invalid_request".
- If a MENU item has sizes and the customer did not give one, ask for it (action "ask_size").
  Only offer sizes listed for that item.
- For coffee, latte and cappuccino, ask hot or iced if not given (action "ask_temperature").
  Espresso is always served hot; never offer it iced.
- For latte and cappuccino, ask which milk if not given (action "ask_milk").
  Offer whole, skim, oat or almond.
- You may ask once about modifications such as extra shots or syrups (action "ask_modifications").
  If the customer declines or gives them, move on.
- Reject impossible combinations (for example a size that does not exist for the item)
  and ask again.
- When the pending item has everything it needs, use action "add_item", set needs_more_info
  to false, and ask if they want anything else.
- When the customer says they are done ("that's it", "that's all", "nothing else") and
  ORDER SO FAR is not empty, use action "finalize_order", set order_complete to true, and
  read back the order with the total.
- "pending_item" must always contain ALL attributes collected so far for the pending item
  (item, size, temperature, milk, modifications), not just the new ones. Use lowercase menu
  names. Set it to null when there is no item being discussed.

Always return ONLY a JSON object with exactly these keys:
{
  "reply": "what you say to the customer",
  "needs_more_info": true,
  "order_complete": false,
  "pending_item": {"item": "latte", "size": "large", "temperature": "hot", "milk": "oat", "modifications": []},
  "action": "one of: ask_size, ask_temperature, ask_milk, ask_modifications, add_item, finalize_order, invalid_request"
}
""".strip()

SINGLE_TURN_SYSTEM_PROMPT_BASE = """
You are a friendly NYC coffee shop cashier. Parse customer orders and return ONLY a JSON object with this exact format:
{
  "items": [{"item": "latte", "size": "large", "price": 4.50}],
  "total": 4.50,
  "response": "Got it! One large latte. That'll be $4.50"
}

Only include items that are on the menu, priced from the menu. Be conversational but efficient - this is a
busy NYC shop. If the customer orders something not on the menu, politely let them know, suggest alternatives,
and return an empty "items" list with a total of 0. If size is unclear, ask for clarification and return an
empty "items" list with a total of 0.
""".strip()


def build_conversation_system_prompt(
    menu_json: Dict[str, Any],
    order_items: List[Dict[str, Any]],
    pending_item: Optional[Dict[str, Any]],
) -> str:
    """
    Build the system prompt for one conversation turn.

    The menu, the confirmed items and the pending item are embedded so the
    oracle sees the full order state on every call.
    """
    return (
        f"{CONVERSATION_SYSTEM_PROMPT_BASE}\n\n"
        f"MENU (prices in USD; nested objects are size -> price):\n{json.dumps(menu_json, indent=2)}\n\n"
        f"ORDER SO FAR:\n{json.dumps(order_items, indent=2)}\n\n"
        f"PENDING ITEM:\n{json.dumps(pending_item)}"
    )


def build_single_turn_system_prompt(menu_json: Dict[str, Any]) -> str:
    return f"{SINGLE_TURN_SYSTEM_PROMPT_BASE}\n\nCurrent menu with prices: {json.dumps(menu_json)}"


# --------------------------------------------------------------------------------------
# Response schemas
# --------------------------------------------------------------------------------------

class OracleTurnReply(BaseModel):
    """Structured reply for one conversation turn."""
    reply: str
    needs_more_info: bool = Field(
        default=True,
        validation_alias=AliasChoices("needs_more_info", "needsMoreInfo"),
    )
    order_complete: bool = Field(
        default=False,
        validation_alias=AliasChoices("order_complete", "orderComplete"),
    )
    pending_item: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("pending_item", "pendingItem"),
    )
    action: Action = "invalid_request"

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, value: Any) -> Any:
        # "add-item", "Add Item" and "ADD_ITEM" all mean add_item
        if not isinstance(value, str):
            return "invalid_request"
        action = value.strip().lower().replace("-", "_").replace(" ", "_")
        if action not in ACTIONS:
            logger.warning("Unknown oracle action '%s', treating as invalid_request", value)
            return "invalid_request"
        return action


class OracleOrderItem(BaseModel):
    item: str
    size: Optional[str] = None
    price: float = Field(default=0.0, ge=0)


class OracleOrderReply(BaseModel):
    """Structured reply for a single-turn order."""
    items: List[OracleOrderItem] = Field(default_factory=list)
    total: float = 0.0
    response: str = ""


# --------------------------------------------------------------------------------------
# Parsing
# --------------------------------------------------------------------------------------

_decoder = json.JSONDecoder()


def extract_json_object(raw: Optional[str]) -> Dict[str, Any]:
    """
    Recover a JSON object from oracle text.

    The whole text is tried first. Failing that, the first balanced {...}
    span that parses as an object is returned, so replies like
    'Sure! {"reply": "ok"} thanks' or fenced code blocks still work.

    Raises:
        OracleResponseError: if no object can be recovered
    """
    text = (raw or "").strip()
    if not text:
        raise OracleResponseError("Empty oracle response", raw=raw or "")

    try:
        value = json.loads(text)
        if isinstance(value, dict):
            return value
    except json.JSONDecodeError:
        pass

    start = text.find("{")
    while start != -1:
        try:
            value, _ = _decoder.raw_decode(text, start)
            if isinstance(value, dict):
                logger.debug("Salvaged JSON object embedded in oracle text at offset %d", start)
                return value
        except json.JSONDecodeError:
            pass
        start = text.find("{", start + 1)

    logger.error("Failed to parse oracle response as JSON")
    logger.debug("Raw oracle response: %s", text[:500])
    raise OracleResponseError("Oracle response did not contain a JSON object", raw=text)


def parse_turn_reply(raw: Optional[str]) -> OracleTurnReply:
    """Parse and validate a conversation-turn reply."""
    payload = extract_json_object(raw)
    try:
        return OracleTurnReply.model_validate(payload)
    except ValidationError as e:
        logger.error("Oracle turn reply failed validation: %s", e.errors()[:3])
        raise OracleResponseError(f"Oracle reply does not match the turn schema: {e}", raw=raw or "") from e


def parse_order_reply(raw: Optional[str]) -> OracleOrderReply:
    """Parse and validate a single-turn order reply."""
    payload = extract_json_object(raw)
    try:
        return OracleOrderReply.model_validate(payload)
    except ValidationError as e:
        logger.error("Oracle order reply failed validation: %s", e.errors()[:3])
        raise OracleResponseError(f"Oracle reply does not match the order schema: {e}", raw=raw or "") from e


# --------------------------------------------------------------------------------------
# Client
# --------------------------------------------------------------------------------------

class OpenAIOracle:
    """
    Language-understanding oracle backed by OpenAI chat completions.

    complete() takes the system prompt and the dialogue history
    ([{"role": "user"|"assistant", "content": ...}]) and returns the raw
    completion text. Parsing is left to the caller.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = None,
        temperature: float = None,
        client: Optional[OpenAI] = None,
    ):
        self.model = model or OPENAI_MODEL
        self.temperature = OPENAI_TEMPERATURE if temperature is None else temperature
        self._api_key = api_key
        self._client = client

        logger.debug("Oracle using model: %s", self.model)

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = self._api_key or get_openai_api_key()
            if not api_key:
                raise OracleError(
                    "OPENAI_API_KEY not found. Create a .env file with OPENAI_API_KEY=sk-... at the project root."
                )
            self._client = OpenAI(api_key=api_key)
        return self._client

    def complete(self, system_prompt: str, history: List[Dict[str, str]]) -> str:
        messages = [{"role": "system", "content": system_prompt}]
        for msg in history:
            messages.append({"role": msg["role"], "content": msg["content"]})

        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error("Oracle call failed: %s", e)
            raise OracleError(f"Oracle call failed: {e}") from e

        content = completion.choices[0].message.content
        return content or ""

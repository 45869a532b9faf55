from budget_assistant.completion.base import CompletionClient
from budget_assistant.conversation import AssistantTurn, ConversationHistory, ToolTurn, UserTurn
from budget_assistant.logger import get_logger
from budget_assistant.models import AssistantReply
from budget_assistant.services.dispatcher import ToolCallDispatcher

logger = get_logger(__name__)

NO_RESPONSE_TEXT = "Sorry, I didn't get a valid response from the server."
NO_FOLLOW_UP_TEXT = "Sorry, I couldn't put together an answer just now."


class OrchestratedAssistant:
    """
    Conversation with a remote model that may call one tool per message.

    Flow per message:
    1. Round 1 sends the history plus the new user turn.
    2. Plain text ends the exchange.
    3. Otherwise the first tool invocation is dispatched and round 2 sends the
       history plus the invocation and its result.

    The durable history is only extended once an exchange completes, so a
    ``CompletionError`` from either round leaves it untouched.
    """

    def __init__(self, client: CompletionClient, dispatcher: ToolCallDispatcher):
        self.client = client
        self.dispatcher = dispatcher
        self.history = ConversationHistory()

    async def send_message(self, text: str) -> AssistantReply:
        user_turn = UserTurn(content=text)

        first = await self.client.complete(self.history.to_wire(user_turn))

        invocations = first.invocations
        if not invocations:
            if first.text is None:
                logger.warning("Round 1 returned neither text nor tool calls")
                return AssistantReply(text=NO_RESPONSE_TEXT, is_error=True)
            self.history.extend([user_turn, AssistantTurn(content=first.text)])
            return AssistantReply(text=first.text)

        # TODO: dispatch every invocation once multi-tool answers are confirmed as product behaviour.
        invocation = invocations[0]
        if len(invocations) > 1:
            logger.warning(
                "Model requested %s tool calls; only '%s' is executed",
                len(invocations),
                invocation.name,
            )

        result = await self.dispatcher.dispatch(invocation.name, invocation.arguments)
        call_turn = AssistantTurn(content=first.text, tool_calls=[invocation])
        result_turn = ToolTurn(tool_call_id=invocation.id, content=result)

        second = await self.client.complete(self.history.to_wire(user_turn, call_turn, result_turn))
        if second.text is None:
            logger.warning("Round 2 returned no text after tool '%s'", invocation.name)
            return AssistantReply(text=NO_FOLLOW_UP_TEXT, is_error=True)

        self.history.extend([user_turn, call_turn, result_turn, AssistantTurn(content=second.text)])
        return AssistantReply(text=second.text)

    async def aclose(self) -> None:
        close = getattr(self.client, "aclose", None)
        if close is not None:
            await close()

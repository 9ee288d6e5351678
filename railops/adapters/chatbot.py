from railops.api.models import ChatMessage, utcnow
from .base import BaseAdapter

APOLOGY = ("I apologize, but I'm experiencing technical difficulties. "
           "Please try again later or contact support if the issue persists.")


def _messages(d)->list[ChatMessage]:
    return [ChatMessage.model_validate(m) for m in d]


def apology()->list[ChatMessage]:
    return [ChatMessage(id=f"error-{int(utcnow().timestamp()*1000)}", role="assistant", text=APOLOGY, confidence=0)]


class ChatbotAdapter(BaseAdapter):
    """Assistant conversation endpoint."""

    async def send_chat_message(self, session_id:str, text:str, message_id:str|None=None)->list[ChatMessage]:
        body = {"sessionId": session_id, "message": text, "timestamp": utcnow().isoformat()}
        if message_id:
            body["messageId"] = message_id
        return await self._soft("send chat message", self.transport.post("/chat", body), _messages, apology)

    async def get_chat_history(self, session_id:str)->list[ChatMessage]:
        return await self._soft(f"get chat history for session {session_id}",
                                self.transport.get("/chat", params={"sessionId": session_id}), _messages, list)

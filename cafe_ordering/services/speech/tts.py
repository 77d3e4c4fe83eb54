"""TwiML rendering for spoken responses."""
from typing import Optional

from cafe_ordering.core.config import settings


def escape_xml(text: str) -> str:
    """Escape XML special characters."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


class TwimlBuilder:
    """Builds the TwiML documents returned to Twilio."""

    def __init__(self, language: Optional[str] = None, voice: Optional[str] = None):
        self.language = language or settings.speech_language
        self.voice = voice or settings.speech_voice

    def _say(self, text: str) -> str:
        return f'<Say language="{self.language}" voice="{self.voice}">{escape_xml(text)}</Say>'

    def gather(self, text: str, action_url: str, timeout: Optional[int] = None) -> str:
        """
        Speak ``text`` and listen for the caller's next answer.

        Args:
            text: Text to speak before gathering
            action_url: URL Twilio posts the transcribed speech to
            timeout: Seconds of silence before Twilio gives up listening

        Returns:
            TwiML XML string
        """
        timeout = timeout if timeout is not None else settings.gather_timeout_seconds
        action = escape_xml(action_url)
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
    <Gather action="{action}" method="POST" input="speech" timeout="{timeout}" language="{self.language}">
        {self._say(text)}
    </Gather>
    <Redirect method="POST">{action}</Redirect>
</Response>"""

    def hangup(self, text: str) -> str:
        """Speak ``text`` and end the call."""
        return f"""<?xml version="1.0" encoding="UTF-8"?>
<Response>
    {self._say(text)}
    <Hangup/>
</Response>"""

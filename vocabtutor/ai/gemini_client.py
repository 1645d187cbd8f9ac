"""Gemini REST client for speech synthesis and pronunciation evaluation."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..audio import codec
from ..exceptions import RemoteCallError
from ..models.evaluation import SpeechEvaluation

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TEXT_MODEL = "gemini-3-flash-preview"
DEFAULT_TTS_MODEL = "gemini-2.5-flash-preview-tts"
DEFAULT_VOICE = "Puck"

EVALUATION_PROMPT = """
Analyze the user's pronunciation of the word/phrase: "{target}".
Focus on clarity, intonation, and phoneme accuracy.
Provide a score (0-100), identify any mispronounced sounds, and give a helpful tip.
Be encouraging but precise.
"""

EVALUATION_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "score": {"type": "NUMBER"},
        "feedback": {"type": "STRING"},
        "mispronouncedPhonemes": {"type": "ARRAY", "items": {"type": "STRING"}},
        "improvementTip": {"type": "STRING"},
    },
    "required": ["score", "feedback", "mispronouncedPhonemes", "improvementTip"],
}


class GeminiClient:
    """Thin async client over the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: str,
        text_model: str = DEFAULT_TEXT_MODEL,
        tts_model: str = DEFAULT_TTS_MODEL,
        voice: str = DEFAULT_VOICE,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 30.0,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            text_model: Model used for pronunciation evaluation
            tts_model: Model used for speech synthesis
            voice: Prebuilt voice name for speech synthesis
            base_url: API root, without trailing slash
            timeout_seconds: Total timeout for each request
        """
        if not api_key:
            raise ValueError("Gemini API key is required")
        self.api_key = api_key
        self.text_model = text_model
        self.tts_model = tts_model
        self.voice = voice
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"GeminiClient initialized: text={text_model}, tts={tts_model}, voice={voice}")

    async def generate_content(self, model: str, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST a generateContent request and return the decoded JSON response.

        Raises:
            RemoteCallError: On network failure, timeout, a non-200 response
                or a body that is not valid JSON.
        """
        url = f"{self.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, headers=headers, json=body) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise RemoteCallError(
                            f"Gemini API error: {response.status} - {error_text}",
                            status=response.status,
                        )
                    return await response.json()
        except asyncio.TimeoutError as e:
            raise RemoteCallError(f"Gemini request to {model} timed out") from e
        except aiohttp.ClientError as e:
            raise RemoteCallError(f"Gemini request to {model} failed: {e}") from e
        except ValueError as e:
            raise RemoteCallError(f"Gemini returned malformed JSON: {e}") from e

    async def synthesize_speech(self, text: str) -> Optional[str]:
        """Synthesize speech for ``text``.

        Returns:
            Headerless base64 of 24kHz mono 16-bit PCM, or None when the
            response carries no audio.
        """
        body = {
            "contents": [{"parts": [{"text": text}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": {
                    "voiceConfig": {"prebuiltVoiceConfig": {"voiceName": self.voice}},
                },
            },
        }
        response = await self.generate_content(self.tts_model, body)

        try:
            audio = response["candidates"][0]["content"]["parts"][0]["inlineData"]["data"]
        except (KeyError, IndexError, TypeError):
            logger.warning(f"No audio in synthesis response for {text!r}")
            return None

        logger.debug(f"Synthesized {len(audio)} base64 chars for {text!r}")
        return audio or None

    async def evaluate_pronunciation(
        self,
        audio_payload: str,
        target_text: str,
        mime_type: Optional[str] = None,
    ) -> SpeechEvaluation:
        """Ask the model to grade a recorded attempt at ``target_text``.

        Args:
            audio_payload: Base64 audio, optionally with a data-URI header
            target_text: The word or phrase the user tried to say
            mime_type: Mime tag sent with the audio. Taken from the data-URI
                header when omitted, else ``audio/wav``.

        Raises:
            RemoteCallError: On transport failure or an unusable response.
        """
        if mime_type is None:
            mime_type = codec.data_uri_mime_type(audio_payload) or "audio/wav"

        body = {
            "contents": [{
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": codec.strip_data_uri_header(audio_payload)}},
                    {"text": EVALUATION_PROMPT.format(target=target_text)},
                ],
            }],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": EVALUATION_SCHEMA,
            },
        }
        response = await self.generate_content(self.text_model, body)
        text = self._response_text(response)

        try:
            evaluation = SpeechEvaluation.from_dict(json.loads(text or "{}"))
        except (json.JSONDecodeError, ValueError) as e:
            raise RemoteCallError(f"Unusable evaluation response: {e}") from e

        logger.info(f"Evaluation for {target_text!r}: score={evaluation.score}")
        return evaluation

    @staticmethod
    def _response_text(response: Dict[str, Any]) -> str:
        """Concatenate the text parts of the first candidate."""
        try:
            parts = response["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            return ""
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))

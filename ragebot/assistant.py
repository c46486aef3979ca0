from openai import OpenAI, OpenAIError
from typing import Dict, List
from loguru import logger
import requests
import json
import statsd

from ragebot import config
from ragebot.errors import AssistantError, EmptyCompletion
from ragebot.roast import NO_SUMMARY, RoastConversation, RoastReply


class LLMAssistant:
    def __init__(self, metrics: statsd.StatsClient, model: str = "gpt-3.5-turbo"):
        self.metrics = metrics
        self.model_version = model

    # this method should be overriden in the implementation
    def get_completion(self, messages: List[Dict[str, str]]) -> Dict:
        raise NotImplementedError

    def complete(self, messages: List[Dict[str, str]]) -> str:
        completion = self.get_completion(messages)
        message = (completion or {}).get("message")
        if not message or not message.strip():
            self.metrics.incr("errors.empty_response")
            raise EmptyCompletion
        return message

    def roast(self, conversation: RoastConversation, user_message: str, difficulty: str = None) -> RoastReply:
        # one turn at a time per conversation
        with conversation.lock:
            messages = conversation.build_messages(user_message, difficulty)
            reply = self.complete(messages)
            return conversation.record_reply(reply)

    def summarize(self, conversation: RoastConversation) -> str:
        with conversation.lock:
            if not conversation.has_user_turns():
                return NO_SUMMARY

            summary = self.complete(conversation.build_summary_messages()).strip()
            conversation.summary = summary
            return summary


class ChatGPTAssistant(LLMAssistant):
    def __init__(self, metrics: statsd.StatsClient, openai_api_key: str, model: str = "gpt-3.5-turbo"):
        super().__init__(metrics=metrics, model=model)
        self.openai_client = OpenAI(api_key=openai_api_key)

    def get_completion(self, messages):
        try:
            response = self.openai_client.chat.completions.create(
                model=self.model_version, messages=messages
            )
        except OpenAIError as e:
            self.metrics.incr("errors.generate_response")
            logger.error(f"OpenAI completion failed: {e}")
            raise AssistantError from e

        self.metrics.incr("success.generate_response")

        message = response.choices[0].message.content if response.choices else None
        result = {"message": message}
        if response.usage is not None:
            result |= {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens
            }
        return result


class OllamaAssistant(LLMAssistant):
    def __init__(
        self,
        metrics: statsd.StatsClient,
        model: str = "llama2",
        ctx_window: int = 4096,
        OLLAMA_SERVE_URL: str = "http://127.0.0.1:11434",
        timeout: float = 120,
    ):
        super().__init__(metrics=metrics, model=model)
        self.chat_endpoint = f"{OLLAMA_SERVE_URL}/api/chat"
        self.ctx_window = ctx_window
        self.timeout = timeout

    def get_completion(self, messages):
        body = {
            "model": self.model_version,
            "messages": messages,
            "options": {
                "num_ctx": self.ctx_window,
            },
        }
        try:
            response = requests.post(self.chat_endpoint, data=json.dumps(body), timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            self.metrics.incr("errors.generate_response")
            logger.error(f"Ollama completion failed: {e}")
            raise AssistantError from e

        try:
            # ollama streams one json object per line, the last one carries the token counts
            chunks = [json.loads(line) for line in response.content.decode("utf-8").splitlines() if line.strip()]
        except ValueError as e:
            self.metrics.incr("errors.generate_response")
            logger.error(f"Ollama returned a malformed stream: {e}")
            raise AssistantError from e

        failed = [chunk for chunk in chunks if not isinstance(chunk, dict) or "error" in chunk]
        if failed:
            self.metrics.incr("errors.generate_response")
            logger.error(f"Ollama completion failed: {failed[0]}")
            raise AssistantError

        response_bulk = "".join(
            (chunk.get("message") or {}).get("content", "")
            for chunk in chunks
        )

        result = {"message": response_bulk}
        if chunks and chunks[-1].get("done"):
            response_summary = chunks[-1]
            prompt_tokens = response_summary.get("prompt_eval_count", 0)
            completion_tokens = response_summary.get("eval_count", 0)
            result |= {
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens
            }

        self.metrics.incr("success.generate_response")
        return result


def build_assistant(metrics: statsd.StatsClient) -> LLMAssistant:
    if config.LLM_PROVIDER == "ollama":
        return OllamaAssistant(metrics=metrics, model=config.OLLAMA_MODEL, OLLAMA_SERVE_URL=config.OLLAMA_SERVE_URL)

    if not config.OPENAI_API_KEY:
        logger.error("OPENAI_API_KEY is missing")
        raise AssistantError("OPENAI_API_KEY is missing")
    return ChatGPTAssistant(metrics=metrics, openai_api_key=config.OPENAI_API_KEY, model=config.OPENAI_MODEL)

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional
import re
import threading

Role = Literal["system", "user", "assistant"]
Side = Literal["left", "right"]

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"

PERSONA_PROMPT = (
    "You are a helpful assistant who motivates the user by challenging them to push themselves further. "
    "You roast the user based on their actions, providing feedback and ratings."
)

ROAST_PROMPTS = {
    "easy": "Be gentle but motivating. Encourage the user to improve while being positive.",
    "medium": "Balance between roasting and motivating the user. Provide constructive criticism.",
    "hard": "Roast the user hard, but make it clear they can do better and encourage improvement.",
}

SCORE_INSTRUCTION = (
    "After providing feedback, rate the user's productivity out of 100 "
    "as a pure integer on a new line like this:\nScore: 70"
)

SUMMARY_INSTRUCTION = (
    "Summarize what the user told you about their activities in this conversation "
    "and explain in two or three sentences why they earned their productivity score."
)

NO_SUMMARY = "No summary available."

# longer digit runs are out of range and never parsed
SCORE_PATTERN = re.compile(r"Score:\s*(\d{1,4})\b")
TRAILING_SCORE_PATTERN = re.compile(r"Score:\s*\d+\s*$")

MIN_SCORE = 0
MAX_SCORE = 100


def normalize_difficulty(difficulty: Optional[str]) -> str:
    if not isinstance(difficulty, str):
        return DEFAULT_DIFFICULTY
    difficulty = difficulty.strip().lower()
    if difficulty not in DIFFICULTIES:
        return DEFAULT_DIFFICULTY
    return difficulty


def get_roast_prompt(difficulty: str) -> str:
    return ROAST_PROMPTS.get(difficulty, ROAST_PROMPTS[DEFAULT_DIFFICULTY])


def extract_score(reply: str) -> Optional[int]:
    """
    Pull the "Score: NN" rating out of a model reply.

    The model is asked to put the score on its own line at the end, but it
    sometimes repeats the pattern earlier in the text, so the last match wins.
    Anything outside 0..100 is treated as no score at all.
    """
    matches = SCORE_PATTERN.findall(reply or "")
    if not matches:
        return None
    score = int(matches[-1])
    if score < MIN_SCORE or score > MAX_SCORE:
        return None
    return score


def strip_score(reply: str) -> str:
    return TRAILING_SCORE_PATTERN.sub("", reply or "").strip()


def score_level(average: float) -> int:
    # bands match the five mood images shown next to the score
    if average <= 20:
        return 1
    if average <= 40:
        return 2
    if average <= 60:
        return 3
    if average <= 80:
        return 4
    return 5


@dataclass
class ScoreTracker:
    total: int = 0
    count: int = 0

    def add(self, score: int):
        self.total += score
        self.count += 1

    @property
    def average(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total / self.count

    def formatted(self) -> str:
        return f"{self.average:.2f}"


@dataclass
class RoastReply:
    text: str
    score: Optional[int]
    average_score: float

    @property
    def formatted_average(self) -> str:
        return f"{self.average_score:.2f}"

    @property
    def level(self) -> int:
        return score_level(self.average_score)


@dataclass
class RoastConversation:
    difficulty: str = DEFAULT_DIFFICULTY
    history: List[Dict[str, str]] = field(default_factory=lambda: [{"role": "system", "content": PERSONA_PROMPT}])
    messages: List[Dict[str, str]] = field(default_factory=list)
    tracker: ScoreTracker = field(default_factory=ScoreTracker)
    summary: Optional[str] = None
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_turn(self, role: Role, content: str):
        self.history.append({"role": role, "content": content})

    def build_messages(self, user_message: str, difficulty: Optional[str] = None) -> List[Dict[str, str]]:
        self.difficulty = normalize_difficulty(difficulty)

        self.add_turn("user", user_message)
        self.messages.append({"text": user_message, "side": "right"})

        return [
            {"role": "system", "content": get_roast_prompt(self.difficulty)},
            *self.history,
            {"role": "system", "content": SCORE_INSTRUCTION},
        ]

    def record_reply(self, reply: str) -> RoastReply:
        score = extract_score(reply)
        clean_reply = strip_score(reply)

        # the raw reply, score line included, stays in the history as context
        self.add_turn("assistant", reply)
        if score is not None:
            self.tracker.add(score)
        self.messages.append({"text": clean_reply, "side": "left"})

        return RoastReply(text=clean_reply, score=score, average_score=self.tracker.average)

    def has_user_turns(self) -> bool:
        return any(turn["role"] == "user" for turn in self.history)

    def build_summary_messages(self) -> List[Dict[str, str]]:
        return [*self.history, {"role": "system", "content": SUMMARY_INSTRUCTION}]

    def overview(self) -> str:
        user_count = len([m for m in self.messages if m["side"] == "right"])
        bot_count = len([m for m in self.messages if m["side"] == "left"])
        return (
            f"You have sent {user_count} messages and received {bot_count} responses.\n"
            f"Your current productivity score is {self.tracker.formatted()}/100."
        )


class ConversationRegistry:
    """Active conversations, one per user, kept in process memory only."""

    def __init__(self):
        self._conversations: Dict[int, RoastConversation] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> RoastConversation:
        with self._lock:
            conversation = self._conversations.get(user_id)
            if conversation is None:
                conversation = RoastConversation()
                self._conversations[user_id] = conversation
            return conversation

    def reset(self, user_id: int) -> bool:
        with self._lock:
            return self._conversations.pop(user_id, None) is not None

    def __contains__(self, user_id: int) -> bool:
        return user_id in self._conversations

    def __len__(self) -> int:
        return len(self._conversations)

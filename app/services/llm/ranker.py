import json
import re
from typing import Any

from loguru import logger
from pydantic import ValidationError

from app.core.constants import RAW_EXCERPT_CHARS, RESULT_SIZE
from app.core.exceptions import RankingParseError, RankingServiceError
from app.models.ranking import IdPick, LlmCandidate, LlmUserProfile, PlaytimeExample, TitlePick
from app.services.llm.openrouter import OpenRouterClient

PROMPT_MAX_GAMES = 10
PROMPT_MAX_BANNED = 20
EXPLAIN_MAX_TOKENS = 220

_BRACES = re.compile(r"\{[\s\S]*\}")

RANK_SYSTEM_PROMPT = (
    "You are an expert in Steam video game recommendations. "
    "You are given the games a player played the most (title, hours, achievements, tags). "
    "You must suggest exactly 3 OTHER Steam games (not already in the list) that the player is very likely to enjoy."
)

CANDIDATES_SYSTEM_PROMPT = (
    "You are an expert in Steam video game recommendations. "
    "You are given a player profile and a shortlist of candidate games with their appid. "
    "Pick exactly 3 games from the shortlist, never anything outside of it."
)

EXPLAIN_SYSTEM_PROMPT = (
    "You write concise, neutral game recommendation explanations. Keep it under 120 words. "
    "Do not invent data. No dataset dumps."
)

STANDARD_GOAL = (
    "Goal: suggest EXACTLY 3 other Steam games (not in the list above) that are very likely to please "
    "this player while staying close to their preferences (competitive, co-op, dominant tags...)."
)

SURPRISE_GOAL = (
    "Goal: suggest EXACTLY 3 other Steam games (not in the list above) that are hidden gems: well rated, "
    "consistent with their tastes, but not ultra famous AAA titles. Surprise them with plausible, coherent discoveries."
)

TITLE_CONSTRAINTS = """Constraints:
- Games must be available on Steam (no invented games, no DLC, no demos).
- Do not repeat any title already in the list.
- Stay factual and neutral (no exaggerated superlatives).

Answer ONLY with strict JSON, no surrounding text, in this format:
{
  "picks": [
    { "title": "Game name 1", "reason": "Short explanation (1 sentence)." },
    { "title": "Game name 2", "reason": "Short explanation (1 sentence)." },
    { "title": "Game name 3", "reason": "Short explanation (1 sentence)." }
  ]
}
Do NOT add any other field, comment or text outside the JSON."""

CANDIDATES_CONSTRAINTS = """Answer ONLY with strict JSON, no surrounding text, in this format:
{
  "picks": [
    { "appid": 123, "compatibility": 95 },
    { "appid": 456, "compatibility": 90 },
    { "appid": 789, "compatibility": 85 }
  ]
}
"compatibility" is your 0-100 estimate of how well the game fits the player."""


def parse_json_from_text(text: str) -> Any:
    """
    Parse model output as JSON.

    Strict parse first, then the first ``{...}`` span (first opening brace to
    last closing brace). Raises RankingParseError with a bounded excerpt.
    """
    trimmed = (text or "").strip()
    try:
        return json.loads(trimmed)
    except json.JSONDecodeError:
        pass

    match = _BRACES.search(trimmed)
    if match:
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.error(f"Inner JSON parse failed, raw snippet = {trimmed[:RAW_EXCERPT_CHARS]}")

    raise RankingParseError("LLM JSON parse failed", excerpt=trimmed[:RAW_EXCERPT_CHARS])


def _format_game_line(idx: int, game: PlaytimeExample) -> str:
    ratio = game.achievement_ratio if game.achievement_ratio is not None else "n/a"
    tags = ", ".join(game.tags) or "n/a"
    return f"{idx}. {game.name} - {game.hours}h played - achievements: {ratio}% - tags: {tags}"


def build_rank_prompt(
    top_games: list[PlaytimeExample],
    filters_summary: str = "",
    banned_titles: list[str] | None = None,
    surprise: bool = False,
) -> str:
    lines = "\n".join(_format_game_line(idx, g) for idx, g in enumerate(top_games[:PROMPT_MAX_GAMES], start=1))
    sections = [
        f"Here are the Steam games this player played the most:\n{lines}",
        SURPRISE_GOAL if surprise else STANDARD_GOAL,
    ]
    if filters_summary:
        sections.append(f"Filters chosen by the player:\n{filters_summary}")
    if banned_titles:
        banned = "\n- ".join(banned_titles[:PROMPT_MAX_BANNED])
        sections.append(f"STRICTLY do not suggest any of these games (recently recommended):\n- {banned}")
    sections.append(TITLE_CONSTRAINTS)
    return "\n\n".join(sections)


def build_candidates_prompt(profile: LlmUserProfile, candidates: list[LlmCandidate]) -> str:
    payload = {
        "profile": profile.model_dump(exclude_none=True),
        "candidates": [c.model_dump() for c in candidates],
    }
    return f"Player profile and shortlist:\n{json.dumps(payload, ensure_ascii=False)}\n\n{CANDIDATES_CONSTRAINTS}"


def build_explain_prompt(summary: str, picks: list[dict[str, Any]]) -> str:
    lines = []
    for idx, pick in enumerate(picks[:RESULT_SIZE], start=1):
        title = pick.get("title") or pick.get("name") or "?"
        tags = ", ".join((pick.get("tags") or [])[:5]) or "n/a"
        lines.append(f"#{idx} {title} - compatibility {pick.get('compatibility', 'n/a')}% - key tags: {tags}")
    return (
        f"{summary}\nExplain the TOP 3 while staying factual, positive but sober. "
        "Structure it as 3 short bullet points.\n" + "\n".join(lines)
    )


def _picks_of(parsed: Any) -> list[Any]:
    picks = parsed.get("picks") if isinstance(parsed, dict) else None
    return picks if isinstance(picks, list) else []


class RankingService:
    """Prompt construction and output cleaning around the chat completion client."""

    def __init__(self, client: OpenRouterClient | None = None):
        self.client = client or OpenRouterClient()

    async def _complete(self, system: str, prompt: str, max_tokens: int | None = None) -> str:
        logger.debug(f"[ranker] prompt: {prompt[:RAW_EXCERPT_CHARS]}")
        messages = [{"role": "system", "content": system}, {"role": "user", "content": prompt}]
        raw = await self.client.chat(messages, max_tokens=max_tokens)
        logger.debug(f"[ranker] raw output: {raw[:RAW_EXCERPT_CHARS]}")
        return raw

    async def rank_titles(
        self,
        top_games: list[PlaytimeExample],
        filters_summary: str = "",
        banned_titles: list[str] | None = None,
        surprise: bool = False,
    ) -> list[TitlePick]:
        """Ask for 3 new games by title. Returns at most 3 cleaned picks."""
        prompt = build_rank_prompt(top_games, filters_summary, banned_titles, surprise)
        parsed = parse_json_from_text(await self._complete(RANK_SYSTEM_PROMPT, prompt))

        cleaned = []
        for pick in _picks_of(parsed)[:RESULT_SIZE]:
            if not isinstance(pick, dict):
                continue
            title = str(pick.get("title") or "").strip()
            if title:
                cleaned.append(TitlePick(title=title, reason=str(pick.get("reason") or "").strip()))

        logger.info(f"[ranker] cleaned picks: {[p.title for p in cleaned]}")
        if not cleaned:
            raise RankingServiceError("LLM ranking returned no picks")
        return cleaned

    async def rank_candidates(self, profile: LlmUserProfile, candidates: list[LlmCandidate]) -> list[IdPick]:
        """
        Ask the model to choose 3 games out of an explicit shortlist.

        Picks whose appid was not submitted are dropped, duplicates collapse
        and at most 3 picks are returned.
        """
        prompt = build_candidates_prompt(profile, candidates)
        parsed = parse_json_from_text(await self._complete(CANDIDATES_SYSTEM_PROMPT, prompt))

        submitted = {c.appid for c in candidates}
        picks: list[IdPick] = []
        seen: set[int] = set()
        for pick in _picks_of(parsed):
            try:
                id_pick = IdPick.model_validate(pick)
            except ValidationError:
                continue
            if id_pick.appid not in submitted or id_pick.appid in seen:
                logger.debug(f"[ranker] dropping pick {id_pick.appid}")
                continue
            seen.add(id_pick.appid)
            picks.append(id_pick)
            if len(picks) == RESULT_SIZE:
                break

        logger.info(f"[ranker] kept picks: {[p.appid for p in picks]}")
        if not picks:
            raise RankingServiceError("LLM ranking returned no picks from the submitted candidates")
        return picks

    async def explain(self, summary: str, picks: list[dict[str, Any]]) -> str:
        prompt = build_explain_prompt(summary, picks)
        return await self._complete(EXPLAIN_SYSTEM_PROMPT, prompt, max_tokens=EXPLAIN_MAX_TOKENS)

    async def close(self):
        await self.client.close()

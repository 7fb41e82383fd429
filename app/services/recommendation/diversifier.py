from app.core.constants import RESULT_SIZE
from app.models.catalog import ScoredCandidate
from app.services.recommendation.constants import MAX_PICK_SIMILARITY, SURPRISE_MAX_OVERLAP


def tag_similarity(a: ScoredCandidate, b: ScoredCandidate) -> float:
    """Shared tags over the larger tag set of the two games."""
    tags_a, tags_b = set(a.tags), set(b.tags)
    return len(tags_a & tags_b) / max(1, len(tags_a), len(tags_b))


def is_too_similar(a: ScoredCandidate, b: ScoredCandidate) -> bool:
    return tag_similarity(a, b) > MAX_PICK_SIMILARITY


class Diversifier:
    """
    Picks a primary recommendation plus two alternatives that do not look alike.

    Positional fallback keeps the result full when nothing is dissimilar
    enough, but never picks the same game twice.
    """

    @staticmethod
    def _first(pool: list[ScoredCandidate], chosen: list[ScoredCandidate], accept) -> ScoredCandidate | None:
        taken = {c.appid for c in chosen}
        for candidate in pool:
            if candidate.appid not in taken and accept(candidate):
                return candidate
        return None

    def pick(self, candidates: list[ScoredCandidate], surprise: bool = False) -> list[ScoredCandidate]:
        """
        Args:
            candidates: scored candidates, best first
            surprise: bias the last slot toward a low-overlap pick

        Returns:
            Up to 3 candidates in presentation order
        """
        if not candidates:
            return []

        primary = candidates[0]
        others = candidates[1:]
        result = [primary]

        alt1 = self._first(others, result, lambda g: not is_too_similar(primary, g)) or self._first(
            others, result, lambda g: True
        )
        if alt1:
            result.append(alt1)
            alt2 = self._first(
                others, result, lambda g: not is_too_similar(primary, g) and not is_too_similar(alt1, g)
            ) or self._first(others, result, lambda g: True)
            if alt2:
                result.append(alt2)

        if surprise:
            quirky = next((g for g in reversed(others) if g.overlap < SURPRISE_MAX_OVERLAP), None)
            if quirky and quirky.appid not in {c.appid for c in result}:
                result[-1] = quirky

        return result[:RESULT_SIZE]

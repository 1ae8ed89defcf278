"""
Mentor/mentee matching service.

Scores a mentee against a mentor with an additive tag-overlap heuristic,
then ranks a candidate pool for the suggestions API:

- Feature extraction: profile row -> normalized FeatureSet (tag sets, years)
- MatchScorer: weighted overlap signals plus an availability check
- SuggestionRanker: candidate pool, hard filters, rating boost, ordering

Feature sets and score results are immutable values built per call; nothing
is cached between requests.
"""

from collections.abc import Mapping
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, FrozenSet, List, Optional, Tuple
import logging
import math
import re

from django.conf import settings

from core.exceptions import AuthorizationError, NotFoundError, ProfileMissing, ValidationError

from .lookups import AvailabilityOracle, Lookup, RatingAggregator, RatingSummary
from .models import Profile

logger = logging.getLogger('matching.services')


DEFAULT_WEIGHTS = {
    'overlap_help_vs_skills': 4,
    'overlap_interests_vs_skills': 2,
    'overlap_categories': 3,
    'expertise_exact_hit': 3,
    'experience_years': 0.5,
    'availability_any_future': 2,
    'timezone_hint': 1,
    'preferred_time_hint': 1,
}
DEFAULT_RATING_WEIGHT = 15

DIRECTION_MENTORS = 'mentors'
DIRECTION_MENTEES = 'mentees'


def matching_config() -> dict:
    return getattr(settings, 'MATCHING_CONFIG', {})


def configured_weights() -> Dict[str, float]:
    return {**DEFAULT_WEIGHTS, **matching_config().get('scoring_weights', {})}


def configured_rating_weight() -> float:
    return matching_config().get('rating_weight', DEFAULT_RATING_WEIGHT)


def present_score(value: float) -> float:
    """Round half-up to one decimal for display (7.25 -> 7.3, 7.24 -> 7.2)."""
    if math.isinf(value) or math.isnan(value):
        return value
    return float(Decimal(str(value)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


# =============================================================================
# FEATURE EXTRACTION
# =============================================================================

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')


def to_tag_set(raw) -> FrozenSet[str]:
    """Split a comma-separated string into lower-cased, trimmed, non-empty tokens."""
    if raw is None:
        return frozenset()
    return frozenset(
        token.strip().lower()
        for token in str(raw).split(',')
        if token.strip()
    )


def parse_years(raw) -> int:
    """Leading integer of the value, or 0 when there is none."""
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else 0
    match = _LEADING_INT.match(str(raw))
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class FeatureSet:
    """Normalized, scoring-only view of a profile."""
    role: str
    expertise: FrozenSet[str] = frozenset()
    skills: FrozenSet[str] = frozenset()
    interests: FrozenSet[str] = frozenset()
    help: FrozenSet[str] = frozenset()
    categories: FrozenSet[str] = frozenset()
    preferred_times: FrozenSet[str] = frozenset()
    timezone: str = ''
    experience_years: int = 0
    id: Any = None

    def with_id(self, user_id) -> 'FeatureSet':
        """Attach the owning user id (the extractor does not know it)."""
        return replace(self, id=user_id)


def _field(record, name):
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def extract_features(record, role: str) -> FeatureSet:
    """
    Build a FeatureSet from a profile model instance or a plain mapping.

    Never raises: missing or malformed fields become empty sets / zero.
    """
    return FeatureSet(
        role=role,
        expertise=to_tag_set(_field(record, 'expertise')),
        skills=to_tag_set(_field(record, 'skills')),
        interests=to_tag_set(_field(record, 'interests')),
        help=to_tag_set(_field(record, 'help_areas')),
        categories=to_tag_set(_field(record, 'categories')),
        preferred_times=to_tag_set(_field(record, 'preferred_times')),
        timezone=str(_field(record, 'timezone') or '').strip().lower(),
        experience_years=parse_years(_field(record, 'experience_years')),
    )


# =============================================================================
# SCORING
# =============================================================================

@dataclass(frozen=True)
class Reason:
    """One scoring signal that fired: its code, observed value and weight."""
    code: str
    value: float
    weight: float

    def as_dict(self) -> dict:
        return {'k': self.code, 'v': self.value, 'w': self.weight}


@dataclass(frozen=True)
class ScoreResult:
    score: float
    reasons: Tuple[Reason, ...] = ()
    has_availability: bool = False
    availability_degraded: bool = False

    @property
    def rejected(self) -> bool:
        """True when a hard filter excluded the pair."""
        return self.score == float('-inf')

    def reasons_as_dicts(self) -> List[dict]:
        return [reason.as_dict() for reason in self.reasons]


class MatchScorer:
    """
    Weighted, additive compatibility score for a (mentee, mentor) pair.

    Signals:
    - help areas vs mentor skills and expertise (per overlapping tag)
    - mentee interests vs mentor skills (per overlapping tag)
    - shared categories (per overlapping tag)
    - expertise text mentions any help area (flat, once)
    - mentor experience (damped: weight * log2(1 + years))
    - same timezone, overlapping preferred times (flat)
    - any future available slot (flat; optional hard filter)

    The scorer is direction-agnostic: callers always pass the mentee side
    first and the mentor side second.
    """

    def __init__(self, weights: Optional[Dict[str, float]] = None, oracle: AvailabilityOracle = None):
        self.weights = {**configured_weights(), **(weights or {})}
        self.oracle = oracle or AvailabilityOracle()

    def experience_bonus(self, years: int) -> float:
        if years <= 0:
            return 0.0
        return self.weights['experience_years'] * math.log2(1 + years)

    def tag_score(self, mentee: FeatureSet, mentor: FeatureSet) -> Tuple[float, List[Reason]]:
        """Synchronous part of the score: every signal except availability."""
        w = self.weights
        score = 0.0
        reasons = []

        help_vs_skills = len(mentee.help & mentor.skills) + len(mentee.help & mentor.expertise)
        if help_vs_skills > 0:
            score += help_vs_skills * w['overlap_help_vs_skills']
            reasons.append(Reason('help_vs_skills', help_vs_skills, w['overlap_help_vs_skills']))

        interests_vs_skills = len(mentee.interests & mentor.skills)
        if interests_vs_skills > 0:
            score += interests_vs_skills * w['overlap_interests_vs_skills']
            reasons.append(Reason('interests_vs_skills', interests_vs_skills, w['overlap_interests_vs_skills']))

        categories = len(mentee.categories & mentor.categories)
        if categories > 0:
            score += categories * w['overlap_categories']
            reasons.append(Reason('categories_overlap', categories, w['overlap_categories']))

        # Substring hit: "react" counts against an expertise of "react native"
        expertise_text = ' '.join(sorted(mentor.expertise))
        if expertise_text and any(token in expertise_text for token in mentee.help):
            score += w['expertise_exact_hit']
            reasons.append(Reason('expertise_exact_hit', 1, w['expertise_exact_hit']))

        bonus = self.experience_bonus(mentor.experience_years)
        if bonus > 0:
            score += bonus
            reasons.append(Reason('experience_years', mentor.experience_years, bonus))

        if mentee.timezone and mentee.timezone == mentor.timezone:
            score += w['timezone_hint']
            reasons.append(Reason('timezone_match', 1, w['timezone_hint']))

        if mentee.preferred_times & mentor.preferred_times:
            score += w['preferred_time_hint']
            reasons.append(Reason('preferred_time_overlap', 1, w['preferred_time_hint']))

        return score, reasons

    async def score(
        self,
        mentee: FeatureSet,
        mentor: FeatureSet,
        require_availability: bool = False,
        check_availability: bool = True,
    ) -> ScoreResult:
        score, reasons = self.tag_score(mentee, mentor)

        if not check_availability:
            return ScoreResult(score, tuple(reasons))

        lookup: Lookup[bool] = await self.oracle.has_future_availability(mentor.id)
        if lookup.value:
            score += self.weights['availability_any_future']
            reasons.append(Reason('availability_any_future', 1, self.weights['availability_any_future']))
        elif require_availability:
            return ScoreResult(float('-inf'), tuple(reasons), False, lookup.degraded)

        return ScoreResult(score, tuple(reasons), lookup.value, lookup.degraded)


# =============================================================================
# RANKING
# =============================================================================

@dataclass
class RankedCandidate:
    profile: Profile
    result: ScoreResult
    final_score: float
    rating: Optional[RatingSummary] = None


class SuggestionRanker:
    """
    Ranks mentors for a mentee (``for=mentors``) or mentees for a mentor
    (``for=mentees``).

    Candidates are scored one after another; results are buffered and sorted
    by descending full-precision score, ties broken by ascending user id.
    """

    # direction -> (role the requester must have, profile type of candidates)
    DIRECTIONS = {
        DIRECTION_MENTORS: (Profile.Type.MENTEE, Profile.Type.MENTOR),
        DIRECTION_MENTEES: (Profile.Type.MENTOR, Profile.Type.MENTEE),
    }

    def __init__(self, scorer: MatchScorer = None, ratings: RatingAggregator = None,
                 rating_weight: Optional[float] = None):
        self.scorer = scorer or MatchScorer()
        self.ratings = ratings or RatingAggregator()
        self.rating_weight = configured_rating_weight() if rating_weight is None else rating_weight

    @staticmethod
    def clamp_limit(raw) -> int:
        """
        Clamp to [1, max_limit]; missing, zero or unparsable values use the default.

        Clamping happens before truncation: 0.5 becomes 1, infinity becomes max_limit.
        """
        config = matching_config()
        default = config.get('default_limit', 12)
        maximum = config.get('max_limit', 50)
        try:
            value = float(raw)
        except (TypeError, ValueError):
            value = 0.0
        if math.isnan(value) or value == 0:
            value = default
        return int(max(1, min(maximum, value)))

    def rating_boost(self, rating: Optional[RatingSummary]) -> float:
        if rating is None:
            return 0.0
        return (rating.avg / 5) * self.rating_weight

    async def requester_profile(self, requester) -> Profile:
        try:
            return await Profile.objects.aget(user_id=requester.pk)
        except Profile.DoesNotExist:
            raise ProfileMissing()

    async def rank(self, requester, direction: str = DIRECTION_MENTORS, limit=None,
                   require_availability: bool = False) -> List[dict]:
        direction = (direction or DIRECTION_MENTORS).lower()
        if direction not in self.DIRECTIONS:
            raise ValidationError("Invalid 'for' parameter")
        limit = self.clamp_limit(limit)

        my_profile = await self.requester_profile(requester)
        required_role, candidate_type = self.DIRECTIONS[direction]
        if requester.role != required_role:
            raise AuthorizationError(
                f"Only {required_role}s can fetch {candidate_type} suggestions"
            )

        me = extract_features(my_profile, requester.role).with_id(requester.pk)

        # Profile type and user role must agree; a half-applied role change
        # keeps the candidate out of the pool.
        candidates = [
            profile async for profile in Profile.objects.filter(
                type=candidate_type,
                user__role=candidate_type,
            ).exclude(user_id=requester.pk).select_related('user')
        ]

        if direction == DIRECTION_MENTORS:
            ranked = await self._rank_mentors(me, candidates, require_availability)
            summaries = [self._mentor_summary(entry) for entry in ranked]
        else:
            ranked = await self._rank_mentees(me, candidates)
            summaries = [self._mentee_summary(entry) for entry in ranked]

        logger.info(
            "Ranked %d/%d %s for user %s (require_availability=%s)",
            len(summaries), len(candidates), direction, requester.pk, require_availability,
        )
        return summaries[:limit]

    async def _rank_mentors(self, mentee: FeatureSet, candidates, require_availability) -> List[RankedCandidate]:
        ratings = await self.ratings.for_mentors([c.user_id for c in candidates])
        ranked = []
        for candidate in candidates:
            mentor = extract_features(candidate, Profile.Type.MENTOR).with_id(candidate.user_id)
            result = await self.scorer.score(
                mentee, mentor,
                require_availability=require_availability,
                check_availability=True,
            )
            if result.rejected:
                continue
            rating = ratings.get(candidate.user_id)
            ranked.append(RankedCandidate(
                profile=candidate,
                result=result,
                final_score=result.score + self.rating_boost(rating),
                rating=rating,
            ))
        return self._sorted(ranked)

    async def _rank_mentees(self, mentor: FeatureSet, candidates) -> List[RankedCandidate]:
        ranked = []
        for candidate in candidates:
            mentee = extract_features(candidate, Profile.Type.MENTEE).with_id(candidate.user_id)
            # Same scorer with roles swapped: the candidate is the mentee side.
            result = await self.scorer.score(mentee, mentor, check_availability=False)
            ranked.append(RankedCandidate(profile=candidate, result=result, final_score=result.score))
        return self._sorted(ranked)

    @staticmethod
    def _sorted(ranked: List[RankedCandidate]) -> List[RankedCandidate]:
        return sorted(ranked, key=lambda entry: (-entry.final_score, entry.profile.user_id))

    @staticmethod
    def _display_name(profile: Profile) -> str:
        user = profile.user
        return profile.full_name or user.name or user.email or user.username

    def _base_summary(self, entry: RankedCandidate) -> dict:
        profile = entry.profile
        return {
            'id': profile.user_id,
            'type': profile.type,
            'full_name': self._display_name(profile),
            'headline': profile.headline,
            'bio': profile.bio,
            'categories': profile.categories,
            'timezone': profile.timezone,
            'preferred_times': profile.preferred_times,
            'avatar': profile.user.avatar or None,
            'score': present_score(entry.final_score),
            'reasons': entry.result.reasons_as_dicts(),
        }

    def _mentor_summary(self, entry: RankedCandidate) -> dict:
        summary = self._base_summary(entry)
        profile = entry.profile
        summary.update({
            'expertise': profile.expertise,
            'skills': profile.skills,
            'experience_years': profile.experience_years,
            'has_availability': entry.result.has_availability,
            'rating': entry.rating.avg if entry.rating else None,
            'review_count': entry.rating.count if entry.rating else 0,
        })
        return summary

    def _mentee_summary(self, entry: RankedCandidate) -> dict:
        summary = self._base_summary(entry)
        summary.update({
            'interests': entry.profile.interests,
            'help_areas': entry.profile.help_areas,
        })
        return summary

    async def explain(self, requester, mentor_id) -> dict:
        """Detailed score breakdown of one mentor for the requester."""
        my_profile = await self.requester_profile(requester)

        try:
            mentor_profile = await Profile.objects.select_related('user').aget(user_id=mentor_id)
        except Profile.DoesNotExist:
            raise NotFoundError('Mentor not found')
        if mentor_profile.type != Profile.Type.MENTOR:
            raise NotFoundError('Mentor not found')

        rating = await self.ratings.for_mentor(mentor_profile.user_id)
        mentee = extract_features(my_profile, Profile.Type.MENTEE).with_id(requester.pk)
        mentor = extract_features(mentor_profile, Profile.Type.MENTOR).with_id(mentor_profile.user_id)
        result = await self.scorer.score(mentee, mentor, check_availability=True)
        boost = self.rating_boost(rating)

        return {
            'mentor_id': mentor_profile.user_id,
            'mentor_name': self._display_name(mentor_profile),
            'score': present_score(result.score),
            'final_score': present_score(result.score + boost),
            'reasons': result.reasons_as_dicts(),
            'has_availability': result.has_availability,
            'availability_degraded': result.availability_degraded,
            'weights': dict(self.scorer.weights),
            'rating': rating.avg if rating else None,
            'review_count': rating.count if rating else 0,
            'rating_boost': present_score(boost),
            'rating_weight': self.rating_weight,
        }

"""
Friend suggestion ranking.

Candidates are every active user outside the requester's excluded set
(the requester, accepted friends and pending counterparts). Each one is
scored on shared attributes:

    same course  +3
    same batch   +2
    same role    +1

Scored candidates come first, ordered by score and then user id. Unscored
candidates are shuffled and only used to fill the result up to the limit.
"""

import logging
import random
from collections import namedtuple
from django.conf import settings
from django.contrib.auth import get_user_model
from incampus.exceptions import DataIntegrityError, ValidationError
from users.identifiers import decompose_university_id
from .store import RelationshipStore

logger = logging.getLogger('incampus')
User = get_user_model()

COURSE_WEIGHT = 3
BATCH_WEIGHT = 2
ROLE_WEIGHT = 1

RequesterProfile = namedtuple('RequesterProfile', ['course', 'batch', 'role'])


def profile_for(user):
    parts = decompose_university_id(user.university_id)
    return RequesterProfile(course=parts.course, batch=parts.batch, role=user.role or '')


class Candidate:
    """A suggested user annotated with why it was suggested"""

    def __init__(self, user, matched_attributes, priority_score):
        self.user = user
        self.matched_attributes = matched_attributes
        self.priority_score = priority_score

    def __repr__(self):
        return f"<Candidate user={self.user.id} score={self.priority_score} {self.matched_attributes}>"


def score_candidate(profile, user):
    """
    Build a Candidate for ``user`` relative to the requester ``profile``.

    matched_attributes lists, in order: the candidate's course, the
    course-match note, the batch-match note, the candidate's role and
    the role-match note, each only when present.

    Raises DataIntegrityError for users that cannot be shown.
    """
    if user.pk is None or not user.display_name:
        raise DataIntegrityError(f"User {user.pk} has no usable identifier or display name")

    parts = decompose_university_id(user.university_id)
    role = user.role or ''
    matched = []
    score = 0

    if parts.course:
        matched.append(parts.course)
        if parts.course == profile.course:
            score += COURSE_WEIGHT
            matched.append('Same course')

    if parts.batch and parts.batch == profile.batch:
        score += BATCH_WEIGHT
        matched.append(f"Same batch ({parts.batch})")

    if role:
        matched.append(role)
        if role == profile.role:
            score += ROLE_WEIGHT
            matched.append('Same role')

    return Candidate(user, matched, score)


def rank_candidates(candidates, limit, rng):
    """
    Order scored candidates and bound the list to ``limit``.

    Priority candidates (score > 0) are sorted by score descending and
    user id ascending; the rest are shuffled and appended until the
    limit is reached.
    """
    priority = [c for c in candidates if c.priority_score > 0]
    remainder = [c for c in candidates if c.priority_score == 0]

    priority.sort(key=lambda c: (-c.priority_score, c.user.id))
    rng.shuffle(remainder)

    fill = max(0, limit - len(priority))
    ranked = (priority + remainder[:fill])[:limit]

    # Stable, so equal scores keep the order chosen above
    ranked.sort(key=lambda c: -c.priority_score)
    return ranked


class SuggestionEngine:
    """
    Computes friend suggestions for one user at a time. Read-only;
    safe to run concurrently for any number of users.
    """

    def __init__(self, store=None, rng=None, max_candidates=None):
        config = settings.FRIEND_SUGGESTIONS
        self.store = store or RelationshipStore()
        self.rng = rng or random.Random()
        self.max_candidates = max_candidates or config['MAX_CANDIDATES']
        self.max_limit = config['MAX_LIMIT']

    def suggest(self, user, limit):
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
            raise ValidationError('limit must be a positive integer')
        if limit > self.max_limit:
            raise ValidationError(f"limit must not exceed {self.max_limit}")

        profile = profile_for(user)
        excluded = self.store.excluded_ids(user)

        users = (
            User.objects.filter(is_active=True)
            .exclude(id__in=excluded)
            .order_by('id')[:self.max_candidates]
        )

        candidates = []
        for candidate_user in users:
            try:
                candidates.append(score_candidate(profile, candidate_user))
            except DataIntegrityError as e:
                logger.debug(f"Skipping suggestion candidate: {str(e)}")

        ranked = rank_candidates(candidates, limit, self.rng)
        logger.info(
            f"Suggestions for user {user.id}: {len(ranked)} of {len(candidates)} candidates, "
            f"{sum(1 for c in ranked if c.priority_score > 0)} prioritised"
        )
        return ranked

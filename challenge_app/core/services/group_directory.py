"""Service for groups, their settings and their members."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timezone
import secrets
import string
from threading import Lock
from uuid import uuid4

from challenge_app.constants.challenge_constants import (
    INVITE_CODE_LENGTH,
    MAX_PLAYERS,
    MIN_PLAYERS,
)
from challenge_app.core.errors import NotFoundError, ValidationError
from challenge_app.core.models import Group, GroupMember, GroupRole
from challenge_app.core.schedule import get_zone

_INVITE_ALPHABET = string.ascii_uppercase + string.digits


class GroupDirectory:
    """Stores groups and memberships; answers who belongs to which group."""

    def __init__(self) -> None:
        self._groups: dict[str, Group] = {}
        self._invite_codes: dict[str, str] = {}
        self._members: dict[str, dict[str, GroupMember]] = {}
        self._lock = Lock()

    def create_group(
        self,
        name: str,
        start_date: date,
        timezone_name: str,
        cutoff_time: time,
        max_players: int,
        created_by: str,
    ) -> Group:
        cleaned_name = self._clean_name(name)
        zone_name = self._validate_timezone(timezone_name)
        with self._lock:
            group = Group(
                id=uuid4().hex,
                name=cleaned_name,
                invite_code=self._next_invite_code(),
                start_date=start_date,
                timezone=zone_name,
                cutoff_time=cutoff_time,
                max_players=self.normalize_max_players(max_players),
                created_by=created_by,
            )
            self._groups[group.id] = group
            self._invite_codes[group.invite_code] = group.id
            self._members[group.id] = {}
        return replace(group)

    def get_group(self, group_id: str) -> Group:
        with self._lock:
            return replace(self._group_or_raise(group_id))

    def find_by_invite_code(self, invite_code: str) -> Group:
        with self._lock:
            group_id = self._invite_codes.get(invite_code.strip().upper())
            if group_id is None:
                raise NotFoundError("No group matches this invite code.")
            return replace(self._group_or_raise(group_id))

    def update_group(
        self,
        group_id: str,
        name: str | None = None,
        start_date: date | None = None,
        timezone_name: str | None = None,
        cutoff_time: time | None = None,
        max_players: int | None = None,
    ) -> Group:
        cleaned_name = self._clean_name(name) if name is not None else None
        zone_name = self._validate_timezone(timezone_name) if timezone_name is not None else None
        with self._lock:
            group = self._group_or_raise(group_id)
            updated = replace(
                group,
                name=cleaned_name if cleaned_name is not None else group.name,
                start_date=start_date if start_date is not None else group.start_date,
                timezone=zone_name if zone_name is not None else group.timezone,
                cutoff_time=cutoff_time if cutoff_time is not None else group.cutoff_time,
                max_players=(
                    self.normalize_max_players(max_players)
                    if max_players is not None
                    else group.max_players
                ),
            )
            self._groups[group_id] = updated
        return replace(updated)

    def add_member(
        self,
        group_id: str,
        user_id: str,
        display_name: str,
        role: GroupRole,
    ) -> GroupMember:
        """Register a member. Existing members are returned unchanged."""
        cleaned = display_name.strip()
        with self._lock:
            group = self._group_or_raise(group_id)
            members = self._members[group_id]
            existing = members.get(user_id)
            if existing is not None:
                return replace(existing)

            if not cleaned:
                raise ValidationError("Display name must not be empty.")
            if len(members) >= group.max_players:
                raise ValidationError("This group is full.")

            member = GroupMember(
                group_id=group_id,
                user_id=user_id,
                role=role,
                display_name=cleaned,
                joined_at=datetime.now(timezone.utc),
            )
            members[user_id] = member
        return replace(member)

    def get_member(self, group_id: str, user_id: str) -> GroupMember | None:
        with self._lock:
            self._group_or_raise(group_id)
            member = self._members[group_id].get(user_id)
        return replace(member) if member is not None else None

    def get_members(self, group_id: str) -> list[GroupMember]:
        """Return members in join order."""
        with self._lock:
            self._group_or_raise(group_id)
            members = [replace(m) for m in self._members[group_id].values()]
        return sorted(members, key=lambda m: m.joined_at)

    @staticmethod
    def normalize_max_players(max_players: int) -> int:
        return max(MIN_PLAYERS, min(MAX_PLAYERS, int(max_players)))

    def _group_or_raise(self, group_id: str) -> Group:
        group = self._groups.get(group_id)
        if group is None:
            raise NotFoundError(f"Group '{group_id}' does not exist.")
        return group

    @staticmethod
    def _clean_name(name: str) -> str:
        cleaned = name.strip()
        if not cleaned:
            raise ValidationError("Group name must not be empty.")
        return cleaned

    @staticmethod
    def _validate_timezone(timezone_name: str) -> str:
        cleaned = timezone_name.strip()
        get_zone(cleaned)
        return cleaned

    def _next_invite_code(self) -> str:
        while True:
            code = "".join(secrets.choice(_INVITE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))
            if code not in self._invite_codes:
                return code

"""
Pydantic models for the Clash of Clans API payloads we consume.

Field names follow the API's camelCase JSON so responses can be
validated directly. Fields we do not use are ignored.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


# Achievement names that carry lifetime donation totals
TROOP_DONATIONS_ACHIEVEMENT = "Friend in Need"
SPELL_DONATIONS_ACHIEVEMENT = "Sharing is caring"
SIEGE_DONATIONS_ACHIEVEMENT = "Siege Sharer"


class MemberSummary(BaseModel):
    """One entry of a clan's memberList."""
    tag: str = Field(..., description="Player tag, e.g. '#2PP'")
    name: str = Field("", description="Raw in-game name")
    role: str = Field("member", description="Raw clan role (member/admin/coLeader/leader)")


class Achievement(BaseModel):
    name: str
    value: int = 0


class PlayerSnapshot(BaseModel):
    """
    Detailed player profile from GET /players/{tag}.
    """
    tag: str
    name: str = ""
    townHallLevel: Optional[int] = None
    expLevel: Optional[int] = None
    trophies: Optional[int] = None
    bestTrophies: Optional[int] = None
    warStars: Optional[int] = None
    donations: Optional[int] = None
    donationsReceived: Optional[int] = None
    achievements: List[Achievement] = Field(default_factory=list)

    def achievement_value(self, name: str) -> int:
        """Value of the named achievement, or 0 if the player doesn't have it."""
        for achievement in self.achievements:
            if achievement.name == name:
                return achievement.value
        return 0


class WarAttack(BaseModel):
    attackerTag: str = ""
    defenderTag: str
    stars: int = 0
    destructionPercentage: float = 0


class WarMember(BaseModel):
    tag: str
    name: str = ""
    attacks: List[WarAttack] = Field(default_factory=list)


class WarClan(BaseModel):
    tag: str = ""
    name: str = ""
    members: List[WarMember] = Field(default_factory=list)


class WarReport(BaseModel):
    """
    A single war from GET /clanwarleagues/wars/{warTag}.

    state is one of preparation, inWar, warEnded or notInWar.
    """
    state: str
    clan: WarClan = Field(default_factory=WarClan)
    opponent: WarClan = Field(default_factory=WarClan)


class LeagueRound(BaseModel):
    warTags: List[str] = Field(default_factory=list)


class LeagueGroup(BaseModel):
    """The clan's current league group from GET /clans/{tag}/currentwar/leaguegroup."""
    state: str = ""
    season: Optional[str] = None
    rounds: Optional[List[LeagueRound]] = None

import logging
import re
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import Conflict, NotFound, ValidationFailure
from ..models.league import League
from ..models.team import Team, TeamMembership

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r'^[a-z0-9-]{3,50}$')


def generate_slug(name: str) -> str:
    """'Spring Futsal 2025!' -> 'spring-futsal-2025'"""
    slug = name.lower().strip()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'\s+', '-', slug)
    slug = re.sub(r'-+', '-', slug)
    return slug.strip('-')


def _validate_name(name: str) -> str:
    name = (name or "").strip()
    if not 3 <= len(name) <= 100:
        raise ValidationFailure("League name must be between 3 and 100 characters")
    return name


def _validate_slug(slug: str) -> str:
    if not SLUG_PATTERN.match(slug or ""):
        raise ValidationFailure(
            "League slug must be 3-50 characters, lowercase alphanumeric with hyphens"
        )
    return slug


def _validate_season(season: Optional[str]) -> Optional[str]:
    if not season:
        return None
    season = season.strip()
    if not 4 <= len(season) <= 20:
        raise ValidationFailure("Season must be between 4 and 20 characters")
    return season


def get_league(db: Session, league_id: int) -> League:
    league = db.get(League, league_id)
    if not league:
        raise NotFound("League")
    return league


def get_active_league_by_slug(db: Session, slug: str) -> League:
    """Public lookup; inactive leagues are hidden."""
    league = db.exec(select(League).where(League.slug == slug)).first()
    if not league or not league.is_active:
        raise NotFound("League")
    return league


def list_leagues(db: Session) -> list[League]:
    return db.exec(select(League).order_by(League.name)).all()


def _ensure_slug_free(db: Session, slug: str, league_id: Optional[int] = None) -> None:
    statement = select(League).where(League.slug == slug)
    if league_id is not None:
        statement = statement.where(League.id != league_id)
    if db.exec(statement).first():
        raise Conflict(f"League with slug '{slug}' already exists")


def _flush_unique_slug(db: Session, slug: str) -> None:
    # A concurrent create or rename can slip past _ensure_slug_free
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Unique violation on league slug %s", slug)
        raise Conflict(f"League with slug '{slug}' already exists") from exc


def create_league(
    db: Session,
    name: str,
    slug: Optional[str] = None,
    season: Optional[str] = None,
    is_active: bool = True
) -> League:
    name = _validate_name(name)
    slug = _validate_slug(slug or generate_slug(name))
    season = _validate_season(season)
    _ensure_slug_free(db, slug)

    league = League(name=name, slug=slug, season=season, is_active=is_active)
    db.add(league)
    _flush_unique_slug(db, slug)
    db.commit()
    db.refresh(league)
    logger.info("League %s created (%s)", league.id, league.slug)
    return league


def update_league(db: Session, league_id: int, changes: dict) -> League:
    league = get_league(db, league_id)

    if changes.get("name") is not None:
        league.name = _validate_name(changes["name"])
    if changes.get("slug") is not None:
        slug = _validate_slug(changes["slug"])
        if slug != league.slug:
            _ensure_slug_free(db, slug, league.id)
        league.slug = slug
    if "season" in changes:
        league.season = _validate_season(changes["season"])
    if changes.get("is_active") is not None:
        league.is_active = changes["is_active"]

    league.updated_at = datetime.utcnow()
    db.add(league)
    _flush_unique_slug(db, league.slug)
    db.commit()
    db.refresh(league)
    return league


def delete_league(db: Session, league_id: int) -> None:
    league = get_league(db, league_id)

    teams = db.exec(select(Team).where(Team.league_id == league.id)).all()
    for team in teams:
        memberships = db.exec(
            select(TeamMembership).where(TeamMembership.team_id == team.id)
        ).all()
        for membership in memberships:
            db.delete(membership)
        db.delete(team)
    db.delete(league)
    db.commit()
    logger.info("League %s deleted", league_id)

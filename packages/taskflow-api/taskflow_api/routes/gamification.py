"""
Gamification routes: profile, achievements, daily challenges and power-ups.
"""

from fastapi import APIRouter, Depends

from taskflow.models.user import User
from taskflow.services import GamificationService
from taskflow_api.deps import current_user, get_db
from taskflow_api.responses import dump
from taskflow_api.schemas import PowerUpActivate

router = APIRouter(prefix="/gamification", tags=["gamification"])


@router.get("/profile")
async def profile(user: User = Depends(current_user), db=Depends(get_db)):
    return (await GamificationService(db).get_profile(user.id)).to_dict()


@router.get("/stats")
async def stats(user: User = Depends(current_user), db=Depends(get_db)):
    return await GamificationService(db).stats(user.id)


@router.get("/achievements")
async def achievements(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).achievements(user.id))


@router.get("/challenges")
async def challenges(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).daily_challenges(user.id))


@router.post("/challenges/{challenge_id}/complete")
async def complete_challenge(challenge_id: str, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).complete_challenge(user.id, challenge_id))


@router.get("/power-ups")
async def power_ups(user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).power_ups(user.id))


@router.post("/power-ups/activate")
async def activate_power_up(body: PowerUpActivate, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).activate_power_up(user.id, body.type, body.task_id))


@router.post("/power-ups/{power_up_type}/deactivate")
async def deactivate_power_up(power_up_type: str, user: User = Depends(current_user), db=Depends(get_db)):
    return dump(await GamificationService(db).deactivate_power_up(user.id, power_up_type))

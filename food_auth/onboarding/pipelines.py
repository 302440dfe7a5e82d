"""
Onboarding pipeline functions.

Stateless orchestration of the "finish onboarding" flow. Each step returns
a StepResult; the pipeline stops at the first failed step.
"""

import logging
from typing import List, Optional, TYPE_CHECKING

from common.storage.base import ProfileAssetStore, StorageError
from food_auth.onboarding.models import StepResult
from food_auth.onboarding.services.onboarding_store import OnboardingStore

if TYPE_CHECKING:
    from food_auth.auth.facade import AuthFacade

logger = logging.getLogger(__name__)


async def upload_photo_step(
    asset_store: Optional[ProfileAssetStore],
    uid: str,
    image_bytes: Optional[bytes],
) -> StepResult:
    """Upload the chosen profile photo; succeeds with no value when none was chosen."""
    if not image_bytes:
        return StepResult.success("upload_photo")

    if asset_store is None:
        logger.warning(f"Photo uploads are disabled; skipping photo for {uid}")
        return StepResult.success("upload_photo")

    try:
        url = await asset_store.upload_profile_image(uid, image_bytes)
    except StorageError as e:
        return StepResult.failure("upload_photo", str(e))

    return StepResult.success("upload_photo", value=url)


async def update_photo_step(facade: "AuthFacade", photo_url: Optional[str]) -> StepResult:
    """Push the uploaded photo URL into the profile and session."""
    if not photo_url:
        return StepResult.success("update_photo")

    session = await facade.update_profile(photo_url=photo_url)
    if session is None:
        error = facade.last_error
        return StepResult.failure(
            "update_photo",
            error.message if error is not None else "Profile could not be updated",
        )

    return StepResult.success("update_photo", value=photo_url)


async def save_interests_step(
    onboarding_store: OnboardingStore,
    uid: str,
    interests: List[str],
) -> StepResult:
    if not interests:
        return StepResult.success("save_interests")

    try:
        await onboarding_store.update_interests(uid, interests)
    except Exception as e:
        logger.warning(f"Failed to save interests for {uid}: {e}")
        return StepResult.failure("save_interests", str(e))

    return StepResult.success("save_interests")


async def mark_completed_step(onboarding_store: OnboardingStore, uid: str) -> StepResult:
    try:
        await onboarding_store.mark_onboarding_completed(uid)
    except Exception as e:
        logger.warning(f"Failed to mark onboarding completed for {uid}: {e}")
        return StepResult.failure("mark_completed", str(e))

    return StepResult.success("mark_completed")


async def finish_onboarding_pipeline(
    facade: "AuthFacade",
    onboarding_store: OnboardingStore,
    asset_store: Optional[ProfileAssetStore],
    uid: str,
    image_bytes: Optional[bytes],
    interests: List[str],
) -> List[StepResult]:
    """
    Orchestrates the end of onboarding.

    Args:
        facade: Auth facade, for the profile photo update
        onboarding_store: Stores interests and completion
        asset_store: Profile image storage (None when uploads are disabled)
        uid: Signed-in user's provider uid
        image_bytes: Chosen profile photo, if any
        interests: Selected interest names

    Returns:
        Results of the steps that ran; the last one failed if any did
    """
    results: List[StepResult] = []

    upload = await upload_photo_step(asset_store, uid, image_bytes)
    results.append(upload)
    if not upload.ok:
        return results

    for step in (
        lambda: update_photo_step(facade, upload.value),
        lambda: save_interests_step(onboarding_store, uid, interests),
        lambda: mark_completed_step(onboarding_store, uid),
    ):
        result = await step()
        results.append(result)
        if not result.ok:
            logger.warning(f"Onboarding step {result.step} failed for {uid}: {result.error}")
            return results

    logger.info(f"Onboarding pipeline finished for {uid}")
    return results

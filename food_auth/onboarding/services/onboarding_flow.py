"""
Onboarding flow shown after a user's first sign-in.

Steps: WELCOME -> PHOTO -> INTERESTS -> DONE. Leaving INTERESTS (or
skipping) runs the finish pipeline; on success the flow reaches DONE and the
auth session is refreshed so the new photo shows up.
"""

import logging
from typing import List, Optional, Sequence

from common.storage.base import ProfileAssetStore
from food_auth.auth.facade import AuthFacade
from food_auth.onboarding.models import DEFAULT_INTERESTS, InterestOption, OnboardingStep
from food_auth.onboarding.pipelines import finish_onboarding_pipeline
from food_auth.onboarding.services.onboarding_store import OnboardingStore

logger = logging.getLogger(__name__)


FINISH_ERROR_MESSAGE = "Could not save your details. You can keep using the app normally."


class OnboardingFlow:
    """Step navigation, interest selection and completion for onboarding."""

    _FORWARD = {
        OnboardingStep.WELCOME: OnboardingStep.PHOTO,
        OnboardingStep.PHOTO: OnboardingStep.INTERESTS,
    }
    _BACKWARD = {
        OnboardingStep.PHOTO: OnboardingStep.WELCOME,
        OnboardingStep.INTERESTS: OnboardingStep.PHOTO,
    }

    def __init__(
        self,
        facade: AuthFacade,
        onboarding_store: OnboardingStore,
        asset_store: Optional[ProfileAssetStore] = None,
        interest_names: Sequence[str] = DEFAULT_INTERESTS,
    ):
        """
        Initialize OnboardingFlow.

        Args:
            facade: Auth facade providing the signed-in session
            onboarding_store: Stores interests and completion
            asset_store: Profile image storage; photo upload is skipped when None
            interest_names: Interests offered on the INTERESTS step
        """
        self._facade = facade
        self._store = onboarding_store
        self._asset_store = asset_store
        self.current_step = OnboardingStep.WELCOME
        self.interests: List[InterestOption] = [InterestOption(name=name) for name in interest_names]
        self.profile_image: Optional[bytes] = None
        self.is_loading = False
        self.error_message: Optional[str] = None

    @property
    def selected_interests(self) -> List[str]:
        return [option.name for option in self.interests if option.is_selected]

    async def start_flow(self) -> bool:
        """
        Check whether the signed-in user already finished onboarding.

        Returns:
            True when onboarding was already completed
        """
        session = self._facade.session
        if session is None:
            return False

        self.is_loading = True
        try:
            completed = await self._store.has_completed_onboarding(session.provider_uid)
        except Exception as e:
            logger.warning(f"Could not check onboarding status: {e}")
            return False
        finally:
            self.is_loading = False

        self.current_step = OnboardingStep.DONE if completed else OnboardingStep.WELCOME
        return completed

    def toggle_interest(self, name: str) -> None:
        self.interests = [
            option.model_copy(update={"is_selected": not option.is_selected})
            if option.name == name else option
            for option in self.interests
        ]

    async def next_step(self) -> None:
        if self.current_step in self._FORWARD:
            self.current_step = self._FORWARD[self.current_step]
        elif self.current_step is OnboardingStep.INTERESTS:
            await self.finish()

    def go_back(self) -> None:
        self.current_step = self._BACKWARD.get(self.current_step, self.current_step)

    async def skip(self) -> None:
        await self.finish()

    async def finish(self) -> bool:
        """
        Run the finish pipeline.

        Returns:
            True when every step succeeded and the flow reached DONE
        """
        session = self._facade.session
        if session is None or self.is_loading:
            return False

        self.is_loading = True
        self.error_message = None
        try:
            results = await finish_onboarding_pipeline(
                facade=self._facade,
                onboarding_store=self._store,
                asset_store=self._asset_store,
                uid=session.provider_uid,
                image_bytes=self.profile_image,
                interests=self.selected_interests,
            )
        finally:
            self.is_loading = False

        if not results[-1].ok:
            self.error_message = FINISH_ERROR_MESSAGE
            return False

        self.current_step = OnboardingStep.DONE
        await self._facade.refresh()
        return True

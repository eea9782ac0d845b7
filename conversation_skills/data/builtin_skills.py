from typing import List

from conversation_skills.config import Settings, settings as default_settings
from conversation_skills.domain.models import SkillDefinition
from conversation_skills.data.restaurant_booking import build_restaurant_booking
from conversation_skills.data.troubleshooting import (
    build_commands_troubleshooting,
    build_troubleshooting_triage,
    build_voice_troubleshooting,
    build_whatsapp_troubleshooting,
)


def builtin_skills(settings: Settings = default_settings) -> List[SkillDefinition]:
    """The skills shipped with the engine, in registration order."""
    return [
        build_restaurant_booking(deny_action=settings.RESTAURANT_DENY_ACTION),
        build_voice_troubleshooting(),
        build_whatsapp_troubleshooting(),
        build_commands_troubleshooting(),
        # Lowest priority: only catches help requests no diagnostic claims
        build_troubleshooting_triage(),
    ]

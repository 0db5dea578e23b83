import logging
import random
from dataclasses import dataclass

logger = logging.getLogger("voice_interview.persona.engine")

MALE = "male"
FEMALE = "female"


@dataclass(frozen=True)
class VoiceConfig:
    voice: str
    gender: str


@dataclass(frozen=True)
class InterviewerProfile:
    openai_voice: str
    edge_voice: str
    gender: str
    face_id: str


OPENAI_VOICE_CONFIGS: dict[str, tuple[VoiceConfig, ...]] = {
    "hi": (VoiceConfig("ash", MALE), VoiceConfig("nova", FEMALE)),
    "en-US": (VoiceConfig("echo", MALE), VoiceConfig("onyx", MALE), VoiceConfig("nova", FEMALE)),
    "en-GB": (VoiceConfig("fable", MALE), VoiceConfig("shimmer", FEMALE)),
    "en-IN": (VoiceConfig("onyx", MALE), VoiceConfig("nova", FEMALE)),
    "es": (VoiceConfig("echo", MALE), VoiceConfig("nova", FEMALE)),
    "fr": (VoiceConfig("echo", MALE), VoiceConfig("shimmer", FEMALE)),
    "de": (VoiceConfig("echo", MALE), VoiceConfig("nova", FEMALE)),
    "pt": (VoiceConfig("onyx", MALE), VoiceConfig("nova", FEMALE)),
    "ja": (VoiceConfig("echo", MALE), VoiceConfig("alloy", FEMALE)),
    "ko": (VoiceConfig("echo", MALE), VoiceConfig("alloy", FEMALE)),
    "zh": (VoiceConfig("echo", MALE), VoiceConfig("alloy", FEMALE)),
    "ar": (VoiceConfig("onyx", MALE), VoiceConfig("nova", FEMALE)),
    "it": (VoiceConfig("echo", MALE), VoiceConfig("shimmer", FEMALE)),
    "nl": (VoiceConfig("echo", MALE), VoiceConfig("nova", FEMALE)),
    "ru": (VoiceConfig("onyx", MALE), VoiceConfig("nova", FEMALE)),
    "tr": (VoiceConfig("ash", MALE), VoiceConfig("nova", FEMALE)),
}

DEFAULT_OPENAI_CONFIGS = (VoiceConfig("echo", MALE), VoiceConfig("nova", FEMALE))

EDGE_VOICE_CONFIGS: dict[str, tuple[VoiceConfig, ...]] = {
    "hi": (VoiceConfig("hi-IN-MadhurNeural", MALE), VoiceConfig("hi-IN-SwaraNeural", FEMALE)),
    "en-US": (
        VoiceConfig("en-US-BrianNeural", MALE),
        VoiceConfig("en-US-ChristopherNeural", MALE),
        VoiceConfig("en-US-JennyNeural", FEMALE),
    ),
    "en-GB": (VoiceConfig("en-GB-RyanNeural", MALE), VoiceConfig("en-GB-LibbyNeural", FEMALE)),
    "en-IN": (VoiceConfig("en-IN-PrabhatNeural", MALE), VoiceConfig("en-IN-NeerjaNeural", FEMALE)),
    "es": (VoiceConfig("es-ES-AlvaroNeural", MALE), VoiceConfig("es-ES-ElviraNeural", FEMALE)),
    "fr": (VoiceConfig("fr-FR-HenriNeural", MALE), VoiceConfig("fr-FR-DeniseNeural", FEMALE)),
    "de": (VoiceConfig("de-DE-ConradNeural", MALE), VoiceConfig("de-DE-KatjaNeural", FEMALE)),
    "pt": (VoiceConfig("pt-BR-AntonioNeural", MALE), VoiceConfig("pt-BR-FranciscaNeural", FEMALE)),
    "ja": (VoiceConfig("ja-JP-KeitaNeural", MALE), VoiceConfig("ja-JP-NanamiNeural", FEMALE)),
    "ko": (VoiceConfig("ko-KR-InJoonNeural", MALE), VoiceConfig("ko-KR-SunHiNeural", FEMALE)),
    "zh": (VoiceConfig("zh-CN-YunxiNeural", MALE), VoiceConfig("zh-CN-XiaoxiaoNeural", FEMALE)),
    "ar": (VoiceConfig("ar-SA-HamedNeural", MALE), VoiceConfig("ar-SA-ZariyahNeural", FEMALE)),
    "it": (VoiceConfig("it-IT-DiegoNeural", MALE), VoiceConfig("it-IT-ElsaNeural", FEMALE)),
    "nl": (VoiceConfig("nl-NL-MaartenNeural", MALE), VoiceConfig("nl-NL-ColetteNeural", FEMALE)),
    "ru": (VoiceConfig("ru-RU-DmitryNeural", MALE), VoiceConfig("ru-RU-SvetlanaNeural", FEMALE)),
    "tr": (VoiceConfig("tr-TR-AhmetNeural", MALE), VoiceConfig("tr-TR-EmelNeural", FEMALE)),
}

DEFAULT_EDGE_CONFIGS = (VoiceConfig("en-US-BrianNeural", MALE), VoiceConfig("en-US-JennyNeural", FEMALE))

MALE_FACE_IDS = (
    "7e74d6e7-d559-4394-bd56-4923a3ab75ad",
    "804c347a-26c9-4dcf-bb49-13df4bed61e8",
    "f0ba4efe-7946-45de-9955-c04a04c367b9",
)

FEMALE_FACE_IDS = (
    "b9e5fba3-071a-4e35-896e-211c4d6eaa7b",
    "d2a5c7c6-fed9-4f55-bcb3-062f7cd20103",
    "b1f6ad8f-ed78-430b-85ef-2ec672728104",
)


def _pick_voice(configs: tuple[VoiceConfig, ...], gender: str, rng: random.Random) -> VoiceConfig:
    matching = [c for c in configs if c.gender == gender]
    if not matching:
        return configs[0]
    return rng.choice(matching)


def select_interviewer_profile(language: str, rng: random.Random | None = None) -> InterviewerProfile:
    rng = rng or random.Random()
    gender = MALE if rng.random() < 0.5 else FEMALE

    openai_config = _pick_voice(OPENAI_VOICE_CONFIGS.get(language) or DEFAULT_OPENAI_CONFIGS, gender, rng)
    edge_config = _pick_voice(EDGE_VOICE_CONFIGS.get(language) or DEFAULT_EDGE_CONFIGS, gender, rng)
    face_id = rng.choice(MALE_FACE_IDS if gender == MALE else FEMALE_FACE_IDS)

    profile = InterviewerProfile(
        openai_voice=openai_config.voice,
        edge_voice=edge_config.voice,
        gender=gender,
        face_id=face_id,
    )
    logger.info(
        "Interviewer profile | gender=%s openai=%s edge=%s face=%s",
        gender,
        profile.openai_voice,
        profile.edge_voice,
        face_id,
    )
    return profile

from voice_interview.persona.engine import InterviewerProfile, VoiceConfig, select_interviewer_profile

__all__ = ["InterviewerProfile", "VoiceConfig", "select_interviewer_profile"]

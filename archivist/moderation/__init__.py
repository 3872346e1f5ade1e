from .timeouts import check_target, mute, parse_duration

__all__ = ["check_target", "mute", "parse_duration"]

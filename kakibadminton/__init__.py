"""KakiBadminton: badminton session RSVP, bill splitting and payment tracking."""

__version__ = "1.0.0"

from kakibadminton.models.user import User
from kakibadminton.models.session import PlaySession
from kakibadminton.models.participant import Participant
from kakibadminton.models.payment import Payment
from kakibadminton.models.proof_request import ProofRequest

__all__ = ["User", "PlaySession", "Participant", "Payment", "ProofRequest"]

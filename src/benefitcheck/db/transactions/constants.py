from enum import Enum


class StageType(str, Enum):
    """Pipeline stage a transaction represents, in pipeline order."""

    FETCH = "FETCH"
    API_VERIFY = "API"
    DOCUMENT_FAX = "FAX"
    CALL = "CALL"
    SAVE = "SAVE"


class TransactionStatus(str, Enum):
    """Lifecycle status of a single verification attempt."""

    WAITING = "Waiting"
    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAILED = "FAILED"


class Speaker(str, Enum):
    """Who said a line in a call transcript."""

    SYSTEM = "System"
    COUNTERPARTY = "InsuranceRep"
    AGENT = "AI"


class MessageKind(str, Enum):
    QUESTION = "question"
    ANSWER = "answer"
    CONFIRMATION = "confirmation"
    HOLD = "hold"
    TRANSFER = "transfer"
    NOTE = "note"


CALL_TRANSACTION_METHOD = "Insurance Verification Call"
REQUEST_ID_PREFIX = "REQ"

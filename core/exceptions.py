"""
自定義異常類別

集中管理所有業務邏輯異常，方便 API 層統一處理

每個異常都帶有穩定的 code 字串，API 層會原樣回傳給客戶端
"""


class LotteryException(Exception):
    """所有樂透異常的基類"""
    code = "lottery_error"


# ============ Round 相關異常 ============

class RoundNotFound(LotteryException):
    """回合尚未建立"""
    code = "round_not_found"

    def __init__(self):
        super().__init__("No lottery round has been opened")


class RoundAlreadyOpen(LotteryException):
    """回合已經建立過了（同一時間只能有一個回合）"""
    code = "round_already_open"

    def __init__(self, round_number=None):
        self.round_number = round_number
        if round_number is None:
            super().__init__("A lottery round is already open")
        else:
            super().__init__(f"Round {round_number} is already open")


class InactiveRound(LotteryException):
    """回合目前不接受報名或猜測"""
    code = "inactive_round"

    def __init__(self):
        super().__init__("Round is not active")


class InvalidStateTransition(LotteryException):
    """非法的狀態轉換"""
    code = "invalid_state_transition"


# ============ 報名相關異常 ============

class WrongFeeAmount(LotteryException):
    """報名費金額不正確（多付、少付都拒絕）"""
    code = "wrong_fee_amount"

    def __init__(self, paid_amount, expected):
        self.paid_amount = paid_amount
        self.expected = expected
        super().__init__(f"Registration fee must be exactly {expected}, got {paid_amount}")


class AlreadyRegistered(LotteryException):
    """玩家本回合已經報名過了"""
    code = "already_registered"

    def __init__(self, participant):
        self.participant = participant
        super().__init__(f"Participant {participant} is already registered")


# ============ 猜測相關異常 ============

class NotRegistered(LotteryException):
    """玩家本回合尚未報名"""
    code = "not_registered"

    def __init__(self, participant):
        self.participant = participant
        super().__init__(f"Participant {participant} is not registered")


class MaxAttemptsExceeded(LotteryException):
    """玩家已用完本回合的猜測次數"""
    code = "max_attempts_exceeded"

    def __init__(self, participant, max_attempts):
        self.participant = participant
        self.max_attempts = max_attempts
        super().__init__(
            f"Participant {participant} already used all {max_attempts} attempts"
        )


class GuessOutOfRange(LotteryException):
    """猜測的數字超出範圍"""
    code = "guess_out_of_range"

    def __init__(self, guess, low, high):
        self.guess = guess
        super().__init__(f"Guess must be between {low} and {high}, got {guess}")


# ============ 結算相關異常 ============

class NoWinnersToSettle(LotteryException):
    """沒有任何人猜中，無法結算"""
    code = "no_winners"

    def __init__(self):
        super().__init__("No winners to settle")


class TransferFailed(LotteryException):
    """獎金轉帳失敗（收款方拒收），整個結算會被撤銷"""
    code = "transfer_failed"

    def __init__(self, recipient, amount, reason="recipient refused payment"):
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Transfer of {amount} to {recipient} failed: {reason}")

"""
遊戲常數

金額一律以最小貨幣單位（wei）表示
"""

# 0.02 個原生幣
REGISTRATION_FEE = 20_000_000_000_000_000

MAX_ATTEMPTS = 2

MIN_GUESS = 1
MAX_GUESS = 9

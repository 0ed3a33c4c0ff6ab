"""
服務層

這個 package 包含純計算邏輯與外部協作者，不負責狀態轉換：
- RandomnessService：目標數字的亂數來源
- LedgerService：收取報名費、發放獎金
- PrizeService：獎金計算
- EventService：事件紀錄
"""

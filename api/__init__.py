"""
API 層

FastAPI routers，只負責 request / response 轉換：
- lottery：報名、猜測、結算、查詢
- ledger：帳本餘額查詢
"""

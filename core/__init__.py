"""
核心業務邏輯層

這個 package 包含所有核心業務邏輯，包括：
- RoundEngine：報名、猜測、結算、重置
- 狀態機：集中管理回合狀態轉換
- Locks：並發控制工具
- Exceptions：具名的失敗條件
"""

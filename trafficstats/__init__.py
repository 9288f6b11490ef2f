"""
trafficstats 보고서/분석 아카이브 및 복원
"""

__version__ = "0.1.0"

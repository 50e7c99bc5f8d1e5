"""
Classroom 后端
课程、课时、学习进度与课程资源管理
"""

__version__ = "0.1.0"

#!/usr/bin/env python3
"""
数据库初始化脚本
创建所有数据库表，--seed 时写入演示数据并打印管理员令牌
"""
import argparse
import sys
import os
from pathlib import Path

# Add src/backend to path
backend_dir = Path(__file__).parent / ".." / "src" / "backend"
sys.path.insert(0, str(backend_dir))

# Change to backend directory so relative paths work
os.chdir(str(backend_dir))

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from classroom.core.config import get_app_config
from classroom.core.database import Database
from classroom.core.security import create_access_token
from classroom.gateway import PersistenceGateway
from classroom.services import ContentService, LocalBlobStorage

DEMO_ADMIN_EMAIL = "admin@example.com"

DEMO_LESSONS = [
    ("Welcome", "Getting Started", "https://www.loom.com/share/demo-welcome"),
    ("Setting up your workspace", "Getting Started", None),
    ("Core concepts", "Fundamentals", "https://www.youtube.com/watch?v=dQw4w9WgXcQ"),
    ("Putting it together", "Fundamentals", "https://vimeo.com/76979871"),
]


def seed(database: Database) -> None:
    """写入演示管理员和一门带分组课时的课程"""
    config = get_app_config()
    with database.transaction() as db:
        gateway = PersistenceGateway(db)
        admin = next((u for u in gateway.list_admins() if u.email == DEMO_ADMIN_EMAIL), None)
        if admin is None:
            admin = gateway.insert_user("Demo Admin", DEMO_ADMIN_EMAIL, is_admin=True)
            gateway.commit()
            print(f"已创建管理员: {admin.email}")

        if not gateway.list_courses():
            service = ContentService(gateway, LocalBlobStorage(config.uploads_dir), config)
            course = service.create_course("Demo Course", description="A sample course with sectioned lessons")
            for title, section, video_url in DEMO_LESSONS:
                service.create_lesson(course.id, title, content=f"# {title}", video_url=video_url, section=section)
            print(f"已创建演示课程: {course.title} ({len(DEMO_LESSONS)} 个课时)")

        print(f"管理员令牌: {create_access_token(admin.id, config)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="初始化数据库")
    parser.add_argument("--seed", action="store_true", help="写入演示数据")
    args = parser.parse_args()

    print("初始化数据库...")
    database = Database(get_app_config().database_url).init()
    if args.seed:
        seed(database)
    database.dispose()
    print("完成！")

import os
import sys
from pathlib import Path

# Add root to pythonpath
sys.path.append(os.getcwd())

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite.repos import SQLiteContentRepo, SQLiteContentTypeRepo
from src.app_shell.config import seed_content_types
from src.domain.entities import ContentItem
from src.rules.loader import load_rules


def seed() -> None:
    data_dir = os.environ.get("CMS_DATA_DIR", "./data")
    os.makedirs(data_dir, exist_ok=True)

    db_path = f"{data_dir}/cms.db"
    print(f"Seeding to {db_path}")

    SQLiteMigrator(db_path, "migrations").run_migrations()

    rules = load_rules(Path(os.environ.get("CMS_RULES_PATH", "rules.yaml")))
    content_types = {ct.alias: ct for ct in seed_content_types(rules, SQLiteContentTypeRepo(db_path))}

    article_type = content_types.get("article")
    if article_type is None:
        print("No 'article' content type in rules; skipping sample content.")
        return

    article = ContentItem.scaffold("Welcome", -1, article_type)
    article.apply_property_values(
        {
            "title": "Welcome",
            "body": "<p>This article was created by the seed script.</p>",
        }
    )
    saved = SQLiteContentRepo(db_path).save(article)
    print(f"Created sample article with id {saved.id}")


if __name__ == "__main__":
    seed()

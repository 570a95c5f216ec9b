from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from page_composer.api import create_app
from page_composer.firestore_page_store import FirestorePageStore
from page_composer.logging_config import setup_logging
from page_composer.models.catalog import FormCatalogEntry
from page_composer.page_store import InMemoryPageStore, PageStore
from page_composer.settings import ComposerSettings
from page_composer.template_repository import LocalTemplateRepository, StaticFormCatalog

# Environment configuration
settings = ComposerSettings.from_env()

# Setup logging
setup_logging(environment=settings.environment, project_id=settings.project_id)
logger = logging.getLogger(__name__)

# Use Firestore in production, in-memory for dev
store: PageStore
if settings.page_store == "memory":
    store = InMemoryPageStore()
else:
    store = FirestorePageStore(project_id=settings.project_id)

templates = LocalTemplateRepository(base_path=settings.templates_dir.resolve())

# Form catalog is a JSON list of {"id", "title", "isActive"} entries
forms_path = Path(os.getenv("FORMS_CATALOG", "data/forms.json"))
forms = StaticFormCatalog(
    [FormCatalogEntry.model_validate(item) for item in json.loads(forms_path.read_text(encoding="utf-8"))]
    if forms_path.exists()
    else []
)

app = create_app(store, templates=templates, forms=forms)
logger.info(
    "Page composer API configured",
    extra={"environment": settings.environment, "page_store": settings.page_store},
)

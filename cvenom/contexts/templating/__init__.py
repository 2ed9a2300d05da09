"""
Templating Context

Responsibilities:
- Discovers Typst templates and resolves template ids (always falling back to 'default')
- Stages template files into a workspace
- Converts between the structured CvDocument and the flat profile files
- Creates, loads and lists profile directories

Owns: Template registry, CvDocument model, cv_params.toml / experiences_<lang>.typ formats
Never: Invokes the compiler
"""

from cvenom.contexts.templating.converter import (
    CvDataConverter,
    from_files,
    to_configuration_text,
    to_markup_text,
)
from cvenom.contexts.templating.cv_data_structure import (
    CvDocument,
    load_cv_document,
    save_cv_document,
)
from cvenom.contexts.templating.profiles import (
    create_profile_from_cv_data,
    create_profile_from_templates,
    list_profiles,
    load_profile_cv_data,
    save_profile_cv_data,
    validate_cv_data,
)
from cvenom.contexts.templating.template_registry import (
    Template,
    TemplateOrigin,
    TemplateRegistry,
    TemplateStagingResult,
)

__all__ = [
    # Template discovery and staging
    "TemplateRegistry",
    "Template",
    "TemplateOrigin",
    "TemplateStagingResult",
    # Conversion between CvDocument and profile files
    "CvDataConverter",
    "to_configuration_text",
    "to_markup_text",
    "from_files",
    # Data structure
    "CvDocument",
    "load_cv_document",
    "save_cv_document",
    # Profile directories
    "create_profile_from_templates",
    "create_profile_from_cv_data",
    "save_profile_cv_data",
    "load_profile_cv_data",
    "list_profiles",
    "validate_cv_data",
]

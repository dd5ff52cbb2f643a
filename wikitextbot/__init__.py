from .api import ApiError, MediaWikiApi, Revision
from .idresolver import IDResolver, IDState
from .parameter_parser import Parameter, parse_parameters
from .section_parser import Section, parse_sections
from .tag_parser import Tag, parse_tags
from .template import (
    LinebreakPredicate,
    ParsedTemplate,
    Template,
    TemplateArgument,
    TemplateError,
)
from .template_parser import parse_templates
from .title import Title
from .wikitext import Wikitext

__all__ = (
    "Wikitext",
    "Tag",
    "Parameter",
    "Section",
    "Template",
    "ParsedTemplate",
    "TemplateArgument",
    "TemplateError",
    "LinebreakPredicate",
    "Title",
    "parse_tags",
    "parse_parameters",
    "parse_templates",
    "parse_sections",
    "MediaWikiApi",
    "ApiError",
    "Revision",
    "IDResolver",
    "IDState",
)

from .comparison import explain_difference, explain_what_would_pass
from .descriptions import describe_rule
from .explainer import RuleExplainer
from .formatting import format_currency, format_field_name, format_value
from .tree import build_explanation_tree

__all__ = [
    "RuleExplainer",
    "build_explanation_tree",
    "describe_rule",
    "explain_difference",
    "explain_what_would_pass",
    "format_currency",
    "format_field_name",
    "format_value",
]

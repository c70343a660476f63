"""typers - bidirectional type inference for mini-Haskell with a traced solver."""

from typers.ast import (
    Abs,
    App,
    BinOp,
    BinOpKind,
    BoolLit,
    Expr,
    Fst,
    IfThenElse,
    IntLit,
    IsZero,
    Node,
    Pair,
    Snd,
    Var,
)
from typers.checker import (
    Constraint,
    Derivation,
    InferenceError,
    InferenceResult,
    Rule,
    Solution,
    TBool,
    TFun,
    TInt,
    TTuple,
    TVar,
    TypeExpr,
    build_tree,
    infer,
    normalize,
    solve_constraints,
    texpr_to_str,
)
from typers.config import InferenceConfig, load_config
from typers.inference import Analysis, analyze, analyze_expression
from typers.parser import ParseError, parse

__version__ = "0.1.0"

__all__ = [
    # Expressions
    "Abs",
    # Analysis
    "Analysis",
    "App",
    "BinOp",
    "BinOpKind",
    "BoolLit",
    # Inference
    "Constraint",
    "Derivation",
    "Expr",
    "Fst",
    "IfThenElse",
    # Configuration
    "InferenceConfig",
    "InferenceError",
    "InferenceResult",
    "IntLit",
    "IsZero",
    "Node",
    "Pair",
    # Parsing
    "ParseError",
    "Rule",
    "Snd",
    "Solution",
    # Types
    "TBool",
    "TFun",
    "TInt",
    "TTuple",
    "TVar",
    "TypeExpr",
    "Var",
    "analyze",
    "analyze_expression",
    "build_tree",
    "infer",
    "load_config",
    "normalize",
    "parse",
    "solve_constraints",
    "texpr_to_str",
]

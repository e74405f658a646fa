import ast
import operator as op

_ALLOWED_OPS = {
    ast.Add: op.add,
    ast.Sub: op.sub,
    ast.Mult: op.mul,
    ast.Div: op.truediv,
    ast.USub: op.neg,
    ast.UAdd: op.pos,
}


def parse_amount(expr, *, allow_negative: bool = False) -> float:
    """
    Parse a money amount typed into the form. Plain numbers and simple
    arithmetic are accepted so a package price can be entered as it is
    quoted, e.g. "4 * 1500" or "(12000 - 2000) / 2".
    Thousands separators are ignored.
    """
    if expr is None:
        raise ValueError("Amount is empty")
    if isinstance(expr, bool):
        raise ValueError("Amount must be numeric")
    if isinstance(expr, (int, float)):
        try:
            val = float(expr)
        except OverflowError:
            raise ValueError("Invalid numeric result") from None
    else:
        s = str(expr).strip().replace(",", "")
        if not s:
            raise ValueError("Amount is empty")
        try:
            node = ast.parse(s, mode="eval").body
        except SyntaxError:
            raise ValueError(f"Not a valid amount: {s!r}") from None
        except (RecursionError, MemoryError):
            raise ValueError("Amount expression is too deeply nested") from None
        try:
            val = _eval(node)
        except ZeroDivisionError:
            raise ValueError("Division by zero in amount") from None
        except OverflowError:
            raise ValueError("Invalid numeric result") from None
        except RecursionError:
            raise ValueError("Amount expression is too deeply nested") from None

    if not (val == val) or val in (float("inf"), float("-inf")):
        raise ValueError("Invalid numeric result")
    if val < 0 and not allow_negative:
        raise ValueError("Amount cannot be negative")
    return val


def parse_amount_or_zero(expr) -> float:
    """Lenient variant for values read back from the sheet."""
    try:
        return parse_amount(expr, allow_negative=True)
    except ValueError:
        return 0.0


def _eval(n):
    if isinstance(n, ast.Constant) and isinstance(n.value, (int, float)) and not isinstance(n.value, bool):
        return float(n.value)
    if isinstance(n, ast.UnaryOp) and type(n.op) in _ALLOWED_OPS:
        return _ALLOWED_OPS[type(n.op)](_eval(n.operand))
    if isinstance(n, ast.BinOp) and type(n.op) in _ALLOWED_OPS:
        return _ALLOWED_OPS[type(n.op)](_eval(n.left), _eval(n.right))
    raise ValueError("Unsupported expression")

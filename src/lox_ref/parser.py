"""
Recursive Descent Parser for Lox

Structure:
- Tokens: produced by lexer.Scanner
- Parser: recursive descent with precedence climbing for expressions
- AST: lark Tree nodes labelled by node kind (see tree.py)

Syntax errors are recorded in a Diagnostics collector. A failing production
raises ParseError, which the declaration loop catches before resynchronizing
at the next statement boundary, so a single desynchronization yields a single
diagnostic.
"""

import logging
from typing import Callable, List, Optional, Tuple

from lark import Token, Tree

from . import tree as ast
from .diagnostics import Diagnostics, Phase
from .token_types import TT, Tok
from .utils import recursion_limit

logger = logging.getLogger(__name__)

MAX_ARGS = 255

NESTING_MESSAGE = "Too deeply nested."

# Tokens that begin a declaration/statement; panic mode stops in front of them
_SYNC_TYPES = frozenset({
    TT.CLASS, TT.FUN, TT.VAR, TT.FOR, TT.IF, TT.WHILE, TT.PRINT, TT.RETURN,
})

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        super().__init__(
            f"{message} at offset {token.offset}" if token else message
        )

class Parser:
    """
    Recursive descent parser for Lox.

    Expression precedence (lowest to highest):
    1. assignment (=)
    2. ternary (? :)
    3. or
    4. and
    5. equality (==, !=)
    6. comparison (<, <=, >, >=)
    7. additive (+, -)
    8. multiplicative (*, /)
    9. unary (!, -)
    10. call / property access
    11. primary (literals, identifiers, this, super, parens)
    """

    def __init__(self, tokens: List[Tok], diagnostics: Optional[Diagnostics] = None):
        self.tokens = tokens if tokens and tokens[-1].type == TT.EOF else [*tokens, Tok(TT.EOF, "", None, _end_offset(tokens))]
        self.pos = 0
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        return self.tokens[self.pos]

    def previous(self) -> Tok:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current.type == TT.EOF

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        if not self.at_end():
            self.pos += 1
        return self.previous()

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: str) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise self.error(self.current, message)
        return self.advance()

    def error(self, token: Tok, message: str) -> ParseError:
        """Record a syntax diagnostic; return (not raise) the matching ParseError"""
        self.diagnostics.report(token.offset, message, Phase.SYNTAX)
        return ParseError(message, token)

    def synchronize(self) -> None:
        """Panic mode: drop tokens until a statement boundary"""
        self.advance()

        while not self.at_end():
            if self.previous().type == TT.SEMICOLON:
                return
            if self.current.type in _SYNC_TYPES:
                return
            self.advance()

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> List[Tree]:
        """Parse entire program"""
        self.pos = 0
        stmts: List[Tree] = []

        while not self.at_end():
            try:
                stmt = self.parse_declaration()
            except RecursionError:
                self.error(self.current, NESTING_MESSAGE)
                self.synchronize()
                continue

            if stmt is not None:
                stmts.append(stmt)

        logger.debug("parsed %d top-level statements", len(stmts))
        return stmts

    def parse_single_expression(self) -> Optional[Tree]:
        """
        Parse the whole token stream as one bare expression.

        Returns None unless exactly one expression is followed by EOF and no
        syntax diagnostic was produced along the way.
        """
        self.pos = 0
        before = len(self.diagnostics)

        try:
            expr = self.parse_expr()
        except (ParseError, RecursionError):
            return None

        if len(self.diagnostics) != before or not self.at_end():
            return None
        return expr

    # ========================================================================
    # Declarations
    # ========================================================================

    def parse_declaration(self) -> Optional[Tree]:
        try:
            if self.match(TT.CLASS):
                return self.parse_class_decl()
            if self.match(TT.FUN):
                return self.parse_function("function")
            if self.match(TT.VAR):
                return self.parse_var_decl()

            return self.parse_statement()
        except ParseError:
            self.synchronize()
            return None

    def parse_class_decl(self) -> Tree:
        """class Name [< Super] { method* }"""
        name = self.expect(TT.IDENTIFIER, "Expect class name.")

        superclass = None
        if self.match(TT.LESS):
            self.expect(TT.IDENTIFIER, "Expect superclass name.")
            superclass = ast.variable(ast.lark_token(self.previous()))

        self.expect(TT.LEFT_BRACE, "Expect '{' before class body.")

        methods = []
        while not self.check(TT.RIGHT_BRACE) and not self.at_end():
            methods.append(self.parse_function("method"))

        self.expect(TT.RIGHT_BRACE, "Expect '}' after class body.")
        return ast.classdecl(ast.lark_token(name), superclass, methods)

    def parse_function(self, kind: str) -> Tree:
        """name(params) { body }"""
        name = self.expect(TT.IDENTIFIER, f"Expect {kind} name.")
        self.expect(TT.LEFT_PAREN, f"Expect '(' after {kind} name.")
        params = self.parse_param_list()
        self.expect(TT.RIGHT_PAREN, "Expect ')' after parameters.")

        self.expect(TT.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body = self.parse_block_body()
        return ast.fundecl(ast.lark_token(name), params, body)

    def parse_param_list(self) -> List[Token]:
        params: List[Token] = []
        if self.check(TT.RIGHT_PAREN):
            return params

        while True:
            if len(params) >= MAX_ARGS:
                # Reported, not raised: the parser is still in sync
                self.error(self.current, f"Can't have more than {MAX_ARGS} parameters.")
            params.append(ast.lark_token(self.expect(TT.IDENTIFIER, "Expect parameter name.")))
            if not self.match(TT.COMMA):
                return params

    def parse_var_decl(self) -> Tree:
        """var name [= expr];"""
        name = self.expect(TT.IDENTIFIER, "Expect variable name.")

        initializer = None
        if self.match(TT.EQUAL):
            initializer = self.parse_expr()

        self.expect(TT.SEMICOLON, "Expect ';' after variable declaration.")
        return ast.vardecl(ast.lark_token(name), initializer)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Tree:
        if self.match(TT.FOR):
            return self.parse_for_stmt()
        if self.match(TT.IF):
            return self.parse_if_stmt()
        if self.match(TT.PRINT):
            return self.parse_print_stmt()
        if self.match(TT.RETURN):
            return self.parse_return_stmt()
        if self.match(TT.WHILE):
            return self.parse_while_stmt()
        if self.match(TT.LEFT_BRACE):
            return ast.block(self.parse_block_body())

        return self.parse_expr_stmt()

    def parse_block_body(self) -> List[Tree]:
        """Declarations up to the closing brace (opening brace already consumed)"""
        stmts: List[Tree] = []

        while not self.check(TT.RIGHT_BRACE) and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                stmts.append(stmt)

        self.expect(TT.RIGHT_BRACE, "Expect '}' after block.")
        return stmts

    def parse_for_stmt(self) -> Tree:
        """
        for (init; cond; incr) body

        Desugared into:
            { init; while (cond) { body; incr; } }
        """
        self.expect(TT.LEFT_PAREN, "Expect '(' after 'for'.")

        if self.match(TT.SEMICOLON):
            initializer = None
        elif self.match(TT.VAR):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition = None
        if not self.check(TT.SEMICOLON):
            condition = self.parse_expr()
        self.expect(TT.SEMICOLON, "Expect ';' after loop condition.")

        increment = None
        if not self.check(TT.RIGHT_PAREN):
            increment = self.parse_expr()
        self.expect(TT.RIGHT_PAREN, "Expect ')' after for clauses.")

        body = self.parse_statement()

        if increment is not None:
            body = ast.block([body, ast.exprstmt(increment)])

        if condition is None:
            condition = ast.literal(True)
        loop = ast.whilestmt(condition, body)

        if initializer is not None:
            return ast.block([initializer, loop])

        return loop

    def parse_if_stmt(self) -> Tree:
        """if (cond) then [else otherwise]"""
        self.expect(TT.LEFT_PAREN, "Expect '(' after 'if'.")
        cond = self.parse_expr()
        self.expect(TT.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch = self.parse_statement()
        else_branch = None
        if self.match(TT.ELSE):
            else_branch = self.parse_statement()

        return ast.ifstmt(cond, then_branch, else_branch)

    def parse_print_stmt(self) -> Tree:
        value = self.parse_expr()
        self.expect(TT.SEMICOLON, "Expect ';' after value.")
        return ast.printstmt(value)

    def parse_return_stmt(self) -> Tree:
        """Parse return statement: return [expr];"""
        keyword = self.previous()

        value = None
        if not self.check(TT.SEMICOLON):
            value = self.parse_expr()

        self.expect(TT.SEMICOLON, "Expect ';' after return value.")
        return ast.returnstmt(ast.lark_token(keyword), value)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while (cond) body"""
        self.expect(TT.LEFT_PAREN, "Expect '(' after 'while'.")
        cond = self.parse_expr()
        self.expect(TT.RIGHT_PAREN, "Expect ')' after condition.")
        body = self.parse_statement()
        return ast.whilestmt(cond, body)

    def parse_expr_stmt(self) -> Tree:
        expr = self.parse_expr()
        self.expect(TT.SEMICOLON, "Expect ';' after expression.")
        return ast.exprstmt(expr)

    # ========================================================================
    # Expressions - Precedence Climbing
    # ========================================================================

    def parse_expr(self) -> Tree:
        """Parse expression (top level)"""
        return self.parse_assignment()

    def parse_assignment(self) -> Tree:
        """Parse assignment: target = value (right associative)"""
        expr = self.parse_ternary_expr()

        if self.match(TT.EQUAL):
            equals = self.previous()
            value = self.parse_assignment()

            match ast.tree_label(expr):
                case 'variable':
                    return ast.assign(expr.children[0], value)
                case 'get':
                    obj, name = expr.children
                    return ast.set_(obj, name, value)

            # Reported, not raised: the parser is still in sync
            self.error(equals, "Invalid assignment target.")

        return expr

    def parse_ternary_expr(self) -> Tree:
        """Parse ternary: cond ? then : else"""
        expr = self.parse_or_expr()

        if self.match(TT.QUESTION):
            then_expr = self.parse_expr()
            self.expect(TT.COLON, "Expect ':' in ternary expression.")
            else_expr = self.parse_ternary_expr()  # Right associative
            return ast.ternary(expr, then_expr, else_expr)

        return expr

    def parse_or_expr(self) -> Tree:
        """Parse logical OR: expr or expr"""
        return self._parse_left_assoc(self.parse_and_expr, (TT.OR,), ast.logical)

    def parse_and_expr(self) -> Tree:
        """Parse logical AND: expr and expr"""
        return self._parse_left_assoc(self.parse_equality_expr, (TT.AND,), ast.logical)

    def parse_equality_expr(self) -> Tree:
        return self._parse_left_assoc(self.parse_comparison_expr, (TT.BANG_EQUAL, TT.EQUAL_EQUAL))

    def parse_comparison_expr(self) -> Tree:
        return self._parse_left_assoc(
            self.parse_add_expr,
            (TT.GREATER, TT.GREATER_EQUAL, TT.LESS, TT.LESS_EQUAL),
        )

    def parse_add_expr(self) -> Tree:
        return self._parse_left_assoc(self.parse_mul_expr, (TT.MINUS, TT.PLUS))

    def parse_mul_expr(self) -> Tree:
        return self._parse_left_assoc(self.parse_unary_expr, (TT.SLASH, TT.STAR))

    def _parse_left_assoc(
        self,
        operand: Callable[[], Tree],
        ops: Tuple[TT, ...],
        build: Callable[[Tree, Token, Tree], Tree] = ast.binary,
    ) -> Tree:
        left = operand()

        while self.match(*ops):
            op = ast.lark_token(self.previous())
            right = operand()
            left = build(left, op, right)

        return left

    def parse_unary_expr(self) -> Tree:
        """Parse unary: !x, -x"""
        if self.match(TT.BANG, TT.MINUS):
            op = ast.lark_token(self.previous())
            return ast.unary(op, self.parse_unary_expr())

        return self.parse_postfix_expr()

    def parse_postfix_expr(self) -> Tree:
        """Parse call/property chains: f(a)(b).c.d()"""
        expr = self.parse_primary_expr()

        while True:
            if self.match(TT.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self.match(TT.DOT):
                name = self.expect(TT.IDENTIFIER, "Expect property name after '.'.")
                expr = ast.get(expr, ast.lark_token(name))
            else:
                return expr

    def _finish_call(self, callee: Tree) -> Tree:
        args: List[Tree] = []

        if not self.check(TT.RIGHT_PAREN):
            while True:
                if len(args) >= MAX_ARGS:
                    self.error(self.current, f"Can't have more than {MAX_ARGS} arguments.")
                args.append(self.parse_expr())
                if not self.match(TT.COMMA):
                    break

        paren = self.expect(TT.RIGHT_PAREN, "Expect ')' after arguments.")
        return ast.call(callee, ast.lark_token(paren), args)

    def parse_primary_expr(self) -> Tree:
        """Parse primary expressions: literals, names, this, super, groups"""
        tok = self.current

        match tok.type:
            case TT.FALSE:
                self.advance()
                return ast.literal(False)
            case TT.TRUE:
                self.advance()
                return ast.literal(True)
            case TT.NIL:
                self.advance()
                return ast.literal(None)
            case TT.NUMBER | TT.STRING:
                self.advance()
                return ast.literal(tok.literal)
            case TT.THIS:
                self.advance()
                return ast.this(ast.lark_token(tok))
            case TT.SUPER:
                self.advance()
                self.expect(TT.DOT, "Expect '.' after 'super'.")
                method = self.expect(TT.IDENTIFIER, "Expect superclass method name.")
                return ast.super_(ast.lark_token(tok), ast.lark_token(method))
            case TT.IDENTIFIER:
                self.advance()
                return ast.variable(ast.lark_token(tok))
            case TT.LEFT_PAREN:
                self.advance()
                expr = self.parse_expr()
                self.expect(TT.RIGHT_PAREN, "Expect ')' after expression.")
                return ast.grouping(expr)

        raise self.error(tok, "Expect expression.")


def _end_offset(tokens: List[Tok]) -> int:
    if not tokens:
        return 0
    last = tokens[-1]
    return last.offset + len(last.lexeme)

# ============================================================================
# Entry points
# ============================================================================

def parse(tokens: List[Tok]) -> Tuple[List[Tree], Diagnostics]:
    """Parse a program; return its statements and any syntax diagnostics"""
    diagnostics = Diagnostics()
    with recursion_limit():
        stmts = Parser(tokens, diagnostics).parse()
    return stmts, diagnostics

def parse_expression(tokens: List[Tok]) -> Optional[Tree]:
    """Parse tokens as a single bare expression (interactive mode), else None"""
    with recursion_limit():
        return Parser(tokens, Diagnostics()).parse_single_expression()

def parse_source(source: str) -> Tuple[List[Tree], Diagnostics]:
    """Scan and parse source text, merging lexical and syntax diagnostics"""
    from .lexer import scan

    tokens, diagnostics = scan(source)
    stmts, syntax = parse(tokens)
    diagnostics.extend(syntax)
    return stmts, diagnostics

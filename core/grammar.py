"""
Grammar definitions.

This module contains the Lark grammars for the Ensō source language and for
the JSON-with-comments dialect of the compiler configuration file.
"""

enso_grammar = r"""
    start: (import_def | export_def | struct_def | fn_def | statement)*

    // --- Imports ---
    import_def: "import" STRING ";"

    // --- Definitions ---
    export_def: "export" (struct_def | fn_def)

    struct_def: "struct" NAME "{" field_def* "}"
    field_def: NAME ":" type_expr [","]

    fn_def: "fn" NAME "(" [arg_list] ")" ["->" type_expr] "{" stmt_block "}"
    stmt_block: statement*

    // --- Types ---
    type_expr: list_type | optional_type | enum_type | simple_type
    simple_type: NAME | TYPE_NAME
    list_type: "List" "<" type_expr ">"
    optional_type: "Optional" "<" type_expr ">"
    enum_type: "Enum" "<" (STRING [","])* ">"

    arg_list: arg_def ("," arg_def)*
    arg_def: NAME ":" type_expr

    // --- Statements ---
    statement: let_stmt | assign_stmt | print_stmt | return_stmt | if_stmt | for_stmt | while_stmt | assertion | break_stmt | continue_stmt | expr_stmt

    let_stmt: "let" NAME "=" expr ";"
    assign_stmt: (NAME | prop_access) "=" expr ";"
    print_stmt: "print" "(" expr ")" ";"
    return_stmt: "return" [expr] ";"
    break_stmt: "break" ";"
    continue_stmt: "continue" ";"
    if_stmt: "if" expr "{" stmt_block "}" [else_clause]
    else_clause: "else" "{" stmt_block "}" | "else" if_stmt
    for_stmt: "for" NAME "in" expr "{" stmt_block "}"
    while_stmt: "while" expr "{" stmt_block "}"
    assertion: "assert" expr ";"
    expr_stmt: expr ";"

    // --- Expressions ---
    ?expr: unary (OPERATOR unary)*
    ?unary: "!" unary -> not_expr
          | term
    ?term: atom | "(" expr ")" -> paren_expr
    ?atom: NAME | STRING | NUMBER | BOOLEAN | prop_access | call_expr | struct_init | list_literal

    list_literal: "[" (expr ("," expr)*)? "]"

    struct_init: TYPE_NAME "{" field_init* "}"
    field_init: NAME ":" expr [","]

    call_expr: (NAME | prop_access) "(" [args_call] ")"
    args_call: expr ("," expr)*
    prop_access: NAME ("." NAME)+

    // --- Terminals ---
    BOOLEAN: "true" | "false"
    TYPE_NAME: /[A-Z]\w*/
    STRING: /"(?:[^"\\]|\\.)*"/
    NUMBER: /\d+(\.\d+)?/
    NAME: /(?!(?:let|print|return|if|else|for|while|in|import|export|struct|fn|assert|List|Optional|Enum|break|continue|true|false)\b)[a-zA-Z_]\w*/

    OPERATOR: "==" | "!=" | ">=" | "<=" | "&&" | "||" | "+" | "-" | "*" | "/" | "%" | ">" | "<"

    COMMENT_1: /\/\/[^\n]*/
    COMMENT_2: /\#[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore COMMENT_1
    %ignore COMMENT_2
    %ignore BLOCK_COMMENT
"""

# JSON plus comments and trailing commas, as found in compiler configuration files.
config_grammar = r"""
    ?start: value

    ?value: object
          | array
          | string
          | SIGNED_NUMBER -> number
          | "true" -> true
          | "false" -> false
          | "null" -> null

    array: "[" (value ("," value)* ","?)? "]"
    object: "{" (pair ("," pair)* ","?)? "}"
    pair: string ":" value
    string: ESCAPED_STRING

    LINE_COMMENT: /\/\/[^\n]*/
    HASH_COMMENT: /\#[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.ESCAPED_STRING
    %import common.SIGNED_NUMBER
    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore HASH_COMMENT
    %ignore BLOCK_COMMENT
"""

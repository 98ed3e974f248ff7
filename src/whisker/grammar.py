# Grammar for the *inside* of a tag, after the scanner has stripped the
# delimiters and the sigil (except "%", which the pragma rule keeps).
#
#   reference:  {{ name }}, {{# a.b.c }}, {{ . }}
#   pragma:     {{%IMPLICIT-ITERATOR iterator=item}}
TAG_GRAMMAR = r"""
reference: "." -> implicit
         | NAME ("." NAME)* -> dotted

pragma: "%" NAME option*

option: NAME ["=" value]
?value: NAME
      | ESCAPED_STRING

NAME: /[^\s.="%]+/

%import common.ESCAPED_STRING
%import common.WS
%ignore WS
"""

"""Typespecs, unification and Hindley-Milner inference.

Submodules are imported directly (`ream.typecheck.checker` and so on); this
package initializer stays empty so that `typespec` can be imported by the AST
and printer modules without pulling in the checker.
"""

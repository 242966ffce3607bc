"""Names of the nodes and properties that make up the privilege store."""

from __future__ import annotations

JCR_PRIMARY_TYPE = "jcr:primaryType"

# Node types
NT_REP_PRIVILEGES = "rep:Privileges"
NT_REP_PRIVILEGE = "rep:Privilege"

# Properties of a privilege definition
REP_BITS = "rep:bits"
REP_AGGREGATES = "rep:aggregates"
REP_IS_ABSTRACT = "rep:isAbstract"

# Allocation counter stored on the privileges node
REP_NEXT = "rep:next"

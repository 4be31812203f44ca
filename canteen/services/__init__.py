"""
                        Services Module

Backends the ordering core talks to, following the hybrid architecture
pattern: each service has a development and a production implementation.

Services:
    - store: weekly menu, opening window and order persistence
    - excel_manager: locked Excel export of committed orders for the kitchen
"""

"""
httphandler — typed request dispatch and response contract.

Sub-modules:
    responder  — Responder base, Cookie, empty(), http_error()
    handle     — handle / handle_with_input adapters, decode functions
    jsonresp   — JSON success / error responders
    plainresp  — plain-text success / error responders
    redirect   — redirect responder
"""

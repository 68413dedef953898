"""Payment provider webhooks"""

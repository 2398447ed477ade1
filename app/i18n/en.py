# -*- coding: utf-8 -*-
"""English (en) strings. Fallback language for missing keys."""

LANG = {
    # Keyboards
    "kb.renew": "💰 Renew subscription",
    "kb.buy": "💳 Buy subscription",
    "kb.promo": "🎫 Enter promo code",
    "kb.promo_short": "🎫 Promo code",
    "kb.check_subscription": "📋 Check subscription",
    "kb.main_menu": "🎛️ Main menu",

    "reminder.one_day.trial": (
        "🎁 *Trial reminder*\n\n"
        "⚠️ Your free trial ends tomorrow!\n"
        "📅 End date: {date}\n\n"
        "💡 *To keep using the VPN:*\n"
        "• Buy a subscription via /buy\n"
        "• Or activate a promo code via /promo"
    ),
    "reminder.one_day.paid": (
        "📋 *Subscription reminder*\n\n"
        "⚠️ Your subscription ends tomorrow!\n"
        "📅 End date: {date}\n\n"
        "💡 *Renew your subscription:*\n"
        "• Buy a new plan via /buy\n"
        "• Or activate a promo code via /promo"
    ),
    "reminder.three_days.trial": (
        "🎁 *Trial reminder*\n\n"
        "📅 Your free trial ends in 3 days!\n"
        "📅 End date: {date}\n\n"
        "⏰ *There is still time:*\n"
        "• See the plans: /buy\n"
        "• Learn about promo codes: /promo"
    ),
    "reminder.three_days.paid": (
        "📋 *Subscription reminder*\n\n"
        "📅 Your subscription ends in 3 days!\n"
        "📅 End date: {date}\n\n"
        "⏰ *Time to prepare your renewal:*\n"
        "• Choose a plan: /buy\n"
        "• Or prepare a promo code: /promo"
    ),
    "reminder.week.paid": (
        "📋 *Subscription notice*\n\n"
        "📅 Your subscription ends in a week\n"
        "📅 End date: {date}\n\n"
        "🎯 Renewing early keeps your VPN access uninterrupted!"
    ),
    "reminder.expired.trial": (
        "🎁 *Trial finished*\n\n"
        "❌ Your free trial ended today\n\n"
        "💰 *Keep using the VPN:*\n"
        "• Choose a plan: /buy\n"
        "• Or enter a promo code: /promo"
    ),
    "reminder.expired.paid": (
        "📋 *Subscription expired*\n\n"
        "❌ Your subscription ended today\n\n"
        "🔄 *Restore access:*\n"
        "• Renew: /buy\n"
        "• Or activate a promo code: /promo"
    ),
    "access.suspended.trial": (
        "⏰ *Your trial has ended*\n\n"
        "📅 End date: {date}\n"
        "🚫 VPN access is suspended\n\n"
        "🔄 Access is restored automatically after renewal"
    ),
    "access.suspended.paid": (
        "⏰ *Your subscription has ended*\n\n"
        "📅 End date: {date}\n"
        "🚫 VPN access is suspended\n\n"
        "🔄 Access is restored automatically after renewal"
    ),
    "admin.weekly_stats": (
        "📊 *Weekly statistics*\n"
        "📅 {week_start} - {week_end}\n\n"
        "👥 *Users:*\n"
        "• New: {new_users}\n"
        "• Active subscriptions: {active_subscriptions}\n"
        "• Expired subscriptions: {expired_subscriptions}\n\n"
        "💰 *Payments:*\n"
        "• Count: {payments_count}\n"
        "• Total: {revenue} ₽\n\n"
        "🎫 *Promo codes:*\n"
        "• Used: {promo_codes_used}"
    ),
    "admin.broadcast_completed": (
        "📢 *Broadcast finished*\n\n"
        "🎯 Audience: {target}\n"
        "✅ Sent: {sent}\n"
        "❌ Errors: {errors}"
    ),
}

# -*- coding: utf-8 -*-
"""Russian (ru) strings. Canonical language."""

LANG = {
    # Keyboards
    "kb.renew": "💰 Продлить подписку",
    "kb.buy": "💳 Купить подписку",
    "kb.promo": "🎫 Ввести промокод",
    "kb.promo_short": "🎫 Промокод",
    "kb.check_subscription": "📋 Проверить подписку",
    "kb.main_menu": "🎛️ Главное меню",

    # Reminders: one day before
    "reminder.one_day.trial": (
        "🎁 *Напоминание о пробном периоде*\n\n"
        "⚠️ Ваш бесплатный пробный период истекает завтра!\n"
        "📅 Дата окончания: {date}\n\n"
        "💡 *Чтобы продолжить пользоваться VPN:*\n"
        "• Купите подписку через /buy\n"
        "• Или активируйте промокод /promo\n\n"
        "🚀 Не теряйте доступ к быстрому и безопасному интернету!"
    ),
    "reminder.one_day.paid": (
        "📋 *Напоминание о подписке*\n\n"
        "⚠️ Ваша подписка истекает завтра!\n"
        "📅 Дата окончания: {date}\n\n"
        "💡 *Продлите подписку:*\n"
        "• Купите новый план через /buy\n"
        "• Или активируйте промокод /promo\n\n"
        "🔒 Обеспечьте непрерывную защиту вашего интернет-соединения!"
    ),

    # Reminders: three days before
    "reminder.three_days.trial": (
        "🎁 *Напоминание о пробном периоде*\n\n"
        "📅 Ваш бесплатный пробный период истекает через 3 дня!\n"
        "📅 Дата окончания: {date}\n\n"
        "⏰ *Осталось время подготовиться:*\n"
        "• Ознакомьтесь с тарифными планами: /buy\n"
        "• Узнайте о промокодах: /promo\n\n"
        "💡 Не забудьте продлить доступ к VPN заранее!"
    ),
    "reminder.three_days.paid": (
        "📋 *Напоминание о подписке*\n\n"
        "📅 Ваша подписка истекает через 3 дня!\n"
        "📅 Дата окончания: {date}\n\n"
        "⏰ *Время подготовиться к продлению:*\n"
        "• Выберите подходящий план: /buy\n"
        "• Или подготовьте промокод: /promo\n\n"
        "🔒 Обеспечьте непрерывную защиту вашего интернет-соединения!"
    ),

    # Reminders: week before (paid only)
    "reminder.week.paid": (
        "📋 *Уведомление о подписке*\n\n"
        "📅 Ваша подписка истекает через неделю\n"
        "📅 Дата окончания: {date}\n\n"
        "💡 *У вас есть время:*\n"
        "• Ознакомиться с новыми тарифами: /buy\n"
        "• Найти промокод со скидкой: /promo\n"
        "• Спланировать продление заранее\n\n"
        "🎯 Заблаговременное продление гарантирует бесперебойный доступ к VPN!"
    ),

    # Expired today
    "reminder.expired.trial": (
        "🎁 *Пробный период завершен*\n\n"
        "❌ Ваш бесплатный пробный период истек сегодня\n\n"
        "💰 *Продолжите пользоваться VPN:*\n"
        "• Выберите подходящий план: /buy\n"
        "• Или введите промокод: /promo\n\n"
        "✨ Спасибо, что попробовали наш сервис!"
    ),
    "reminder.expired.paid": (
        "📋 *Подписка истекла*\n\n"
        "❌ Ваша подписка истекла сегодня\n\n"
        "🔄 *Восстановите доступ:*\n"
        "• Продлите подписку: /buy\n"
        "• Или активируйте промокод: /promo\n\n"
        "💡 Выберите новый план и продолжайте пользоваться защищенным интернетом!"
    ),

    # Access suspended (access sync)
    "access.suspended.trial": (
        "⏰ *Ваш пробный период истек*\n\n"
        "📅 Дата окончания: {date}\n"
        "🚫 Доступ к VPN приостановлен\n\n"
        "💡 *Как продолжить пользоваться VPN?*\n"
        "• 💳 Купите подписку в главном меню\n"
        "• 🎫 Активируйте промокод\n"
        "• 👥 Пригласите друзей для получения бонусов\n\n"
        "🔄 После продления доступ восстановится автоматически"
    ),
    "access.suspended.paid": (
        "⏰ *Ваша подписка истекла*\n\n"
        "📅 Дата окончания: {date}\n"
        "🚫 Доступ к VPN приостановлен\n\n"
        "💡 *Как продолжить пользоваться VPN?*\n"
        "• 💳 Купите подписку в главном меню\n"
        "• 🎫 Активируйте промокод\n"
        "• 👥 Пригласите друзей для получения бонусов\n\n"
        "🔄 После продления доступ восстановится автоматически"
    ),

    # Admin reports
    "admin.weekly_stats": (
        "📊 *Еженедельная статистика*\n"
        "📅 {week_start} - {week_end}\n\n"
        "👥 *Пользователи:*\n"
        "• Новых: {new_users}\n"
        "• Активных подписок: {active_subscriptions}\n"
        "• Истекших подписок: {expired_subscriptions}\n\n"
        "💰 *Платежи:*\n"
        "• Количество: {payments_count}\n"
        "• Общая сумма: {revenue} ₽\n\n"
        "🎫 *Промокоды:*\n"
        "• Использовано: {promo_codes_used}\n\n"
        "📈 Хорошей работы!"
    ),
    "admin.broadcast_completed": (
        "📢 *Рассылка завершена*\n\n"
        "🎯 Аудитория: {target}\n"
        "✅ Отправлено: {sent}\n"
        "❌ Ошибок: {errors}"
    ),
}

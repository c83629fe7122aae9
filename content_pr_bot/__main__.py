from content_pr_bot.main import cli

cli()

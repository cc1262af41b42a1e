from decimal import Decimal

from dependency_injector import containers, providers

container = None

def setup_di_container_from_settings(settings):  # noqa: PLR0915
    """Inicializa o DI container após o Django já estar com settings carregados."""
    global container  # noqa: PLW0603
    if container is not None:
        import structlog
        structlog.get_logger().debug("DI container já inicializado.")
        return container

    # ------- IMPORTS QUE USAM DJANGO MODELS -------
    import structlog
    from clinic_core.adapters.tenancy.workspace_resolver import DjangoTenantResolver

    # CQRS buses
    from clinic_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from clinic_core.core.domain.services.event_dispatcher import EventDispatcher

    from financial_engine.adapters.repositories.card_fee_rule_repo_impl import CardFeeRuleRepoImpl
    from financial_engine.adapters.repositories.cost_repo_impl import CostRepoImpl
    from financial_engine.adapters.repositories.quote_repo_impl import QuoteRepoImpl
    from financial_engine.adapters.repositories.report_repo_impl import FinancialReportRepoImpl
    from financial_engine.adapters.repositories.sale_repo_impl import PaymentInstallmentRepoImpl, SaleRepoImpl
    from financial_engine.adapters.repositories.workspace_settings_repo_impl import WorkspaceSettingsRepoImpl

    # Commands
    from financial_engine.core.application.commands.cost_commands import (
        CreateCardFeeRulesCommand,
        CreateCostCommand,
        DeactivateCardFeeGroupCommand,
        DeactivateCardFeeRuleCommand,
        DeleteCostCommand,
        ReplaceCardFeeGroupCommand,
        ReplicateRecurringCostsCommand,
        UpdateCostCommand,
    )
    from financial_engine.core.application.commands.quote_commands import (
        ConvertQuoteCommand,
        CreateQuoteCommand,
        DeleteQuoteCommand,
        UpdateQuoteCommand,
    )
    from financial_engine.core.application.commands.sale_commands import (
        CreateSaleCommand,
        DeleteSaleCommand,
        MarkOverdueInstallmentsCommand,
        SettleInstallmentCommand,
    )

    # Handlers
    from financial_engine.core.application.handlers.cost_handlers import (
        CreateCardFeeRulesHandler,
        CreateCostHandler,
        DeactivateCardFeeGroupHandler,
        DeactivateCardFeeRuleHandler,
        DeleteCostHandler,
        GetCostHandler,
        GetCostStatsHandler,
        GetPendingRecurrencesHandler,
        GetVariableCostSummaryHandler,
        ListCardFeeRulesHandler,
        ListCostsHandler,
        ReplaceCardFeeGroupHandler,
        ReplicateRecurringCostsHandler,
        UpdateCostHandler,
    )
    from financial_engine.core.application.handlers.quote_handlers import (
        ConvertQuoteHandler,
        CreateQuoteHandler,
        DeleteQuoteHandler,
        GetQuoteHandler,
        ListQuotesHandler,
        UpdateQuoteHandler,
    )
    from financial_engine.core.application.handlers.report_handlers import (
        GetCashFlowHandler,
        GetCommissionReportHandler,
        GetDashboardStatsHandler,
    )
    from financial_engine.core.application.handlers.sale_handlers import (
        CreateSaleHandler,
        DeleteSaleHandler,
        GetSaleHandler,
        ListSalesHandler,
        MarkOverdueInstallmentsHandler,
        SettleInstallmentHandler,
    )

    # Queries
    from financial_engine.core.application.queries.cost_queries import (
        GetCostQuery,
        GetCostStatsQuery,
        GetPendingRecurrencesQuery,
        GetVariableCostSummaryQuery,
        ListCardFeeRulesQuery,
        ListCostsQuery,
    )
    from financial_engine.core.application.queries.quote_queries import GetQuoteQuery, ListQuotesQuery
    from financial_engine.core.application.queries.report_queries import (
        GetCashFlowQuery,
        GetCommissionReportQuery,
        GetDashboardStatsQuery,
    )
    from financial_engine.core.application.queries.sale_queries import GetSaleQuery, ListSalesQuery

    # Serviços
    from financial_engine.core.application.services.cashflow_service import CashFlowService
    from financial_engine.core.application.services.commission_service import CommissionReportService
    from financial_engine.core.application.services.dashboard_service import DashboardService
    from financial_engine.core.application.services.settlement_service import SettlementService
    from financial_engine.core.domain.services.cashflow_aggregator import CashFlowAggregator
    from financial_engine.core.domain.services.commission_calculator import CommissionCalculator
    from financial_engine.core.domain.services.cost_expander import RecurringCostExpander
    from financial_engine.core.domain.services.fee_rule_resolver import FeeRuleResolver
    from financial_engine.core.domain.services.installment_scheduler import InstallmentScheduler
    from financial_engine.core.domain.services.split_validator import PaymentSplitValidator

    # ─────────────────────────────────────────────────────────
    # Construção do container DI
    # ─────────────────────────────────────────────────────────
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()

        # Infra
        logger           = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)
        tenant_resolver  = providers.Singleton(DjangoTenantResolver)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus   = providers.Singleton(QueryBusImpl)

        # Implementações de Repositórios
        sale_repo          = providers.Singleton(SaleRepoImpl)
        installment_repo   = providers.Singleton(PaymentInstallmentRepoImpl)
        card_fee_rule_repo = providers.Singleton(CardFeeRuleRepoImpl)
        cost_repo          = providers.Singleton(CostRepoImpl)
        quote_repo         = providers.Singleton(QuoteRepoImpl)
        report_repo        = providers.Singleton(FinancialReportRepoImpl)
        settings_repo      = providers.Singleton(
            WorkspaceSettingsRepoImpl,
            default_tax_rate=config.engine.default_tax_rate,
            default_card_receiving_days=config.engine.default_card_receiving_days,
        )

        # Serviços de domínio
        split_validator = providers.Singleton(PaymentSplitValidator, tolerance=config.engine.reconciliation_tolerance)
        fee_resolver    = providers.Singleton(
            FeeRuleResolver,
            repo=card_fee_rule_repo,
            default_receiving_days=config.engine.default_card_receiving_days,
        )
        scheduler       = providers.Singleton(InstallmentScheduler, interval_days=config.engine.installment_interval_days)
        cost_expander   = providers.Singleton(RecurringCostExpander)
        aggregator      = providers.Singleton(CashFlowAggregator)
        commission_calculator = providers.Singleton(CommissionCalculator)

        # Serviços de aplicação
        settlement_service = providers.Singleton(
            SettlementService,
            validator=split_validator,
            resolver=fee_resolver,
            scheduler=scheduler,
            settings_repo=settings_repo,
        )
        cashflow_service = providers.Singleton(
            CashFlowService,
            report_repo=report_repo,
            cost_repo=cost_repo,
            expander=cost_expander,
            aggregator=aggregator,
        )
        dashboard_service = providers.Singleton(
            DashboardService,
            report_repo=report_repo,
            fee_rule_repo=card_fee_rule_repo,
            settings_repo=settings_repo,
        )
        commission_service = providers.Singleton(
            CommissionReportService,
            report_repo=report_repo,
            calculator=commission_calculator,
        )

        # Handlers (comandos)
        create_sale_handler      = providers.Factory(CreateSaleHandler, repo=sale_repo,
                                                     settlement=settlement_service,
                                                     dispatcher=event_dispatcher)
        delete_sale_handler      = providers.Factory(DeleteSaleHandler, repo=sale_repo)
        settle_installment_handler = providers.Factory(SettleInstallmentHandler, repo=installment_repo,
                                                       dispatcher=event_dispatcher)
        mark_overdue_handler     = providers.Factory(MarkOverdueInstallmentsHandler, repo=installment_repo)

        create_cost_handler      = providers.Factory(CreateCostHandler, repo=cost_repo,
                                                     expander=cost_expander,
                                                     dispatcher=event_dispatcher)
        update_cost_handler      = providers.Factory(UpdateCostHandler, repo=cost_repo, expander=cost_expander)
        delete_cost_handler      = providers.Factory(DeleteCostHandler, repo=cost_repo)
        replicate_costs_handler  = providers.Factory(ReplicateRecurringCostsHandler, repo=cost_repo,
                                                     expander=cost_expander,
                                                     dispatcher=event_dispatcher)

        create_card_fees_handler = providers.Factory(CreateCardFeeRulesHandler, repo=card_fee_rule_repo)
        deactivate_card_fee_handler = providers.Factory(DeactivateCardFeeRuleHandler, repo=card_fee_rule_repo)
        replace_card_fee_group_handler = providers.Factory(ReplaceCardFeeGroupHandler, repo=card_fee_rule_repo)
        deactivate_card_fee_group_handler = providers.Factory(DeactivateCardFeeGroupHandler, repo=card_fee_rule_repo)

        create_quote_handler     = providers.Factory(CreateQuoteHandler, repo=quote_repo)
        update_quote_handler     = providers.Factory(UpdateQuoteHandler, repo=quote_repo)
        delete_quote_handler     = providers.Factory(DeleteQuoteHandler, repo=quote_repo)
        convert_quote_handler    = providers.Factory(ConvertQuoteHandler, quote_repo=quote_repo,
                                                     sale_repo=sale_repo,
                                                     settlement=settlement_service,
                                                     dispatcher=event_dispatcher)

        # Handlers (queries)
        get_sale_handler         = providers.Factory(GetSaleHandler, repo=sale_repo)
        list_sales_handler       = providers.Factory(ListSalesHandler, repo=sale_repo)
        get_cost_handler         = providers.Factory(GetCostHandler, repo=cost_repo)
        list_costs_handler       = providers.Factory(ListCostsHandler, repo=cost_repo)
        cost_stats_handler       = providers.Factory(GetCostStatsHandler, repo=cost_repo)
        variable_costs_handler   = providers.Factory(GetVariableCostSummaryHandler, repo=cost_repo)
        pending_recurrences_handler = providers.Factory(GetPendingRecurrencesHandler, repo=cost_repo)
        list_card_fees_handler   = providers.Factory(ListCardFeeRulesHandler, repo=card_fee_rule_repo)
        get_quote_handler        = providers.Factory(GetQuoteHandler, repo=quote_repo)
        list_quotes_handler      = providers.Factory(ListQuotesHandler, repo=quote_repo)
        cashflow_handler         = providers.Factory(GetCashFlowHandler, service=cashflow_service)
        dashboard_handler        = providers.Factory(GetDashboardStatsHandler, service=dashboard_service)
        commissions_handler      = providers.Factory(GetCommissionReportHandler, service=commission_service)

        def init(self):
            # Bus de comandos
            cmd_bus = self.command_bus()

            cmd_bus.register(CreateSaleCommand, self.create_sale_handler())
            cmd_bus.register(DeleteSaleCommand, self.delete_sale_handler())
            cmd_bus.register(SettleInstallmentCommand, self.settle_installment_handler())
            cmd_bus.register(MarkOverdueInstallmentsCommand, self.mark_overdue_handler())

            cmd_bus.register(CreateCostCommand, self.create_cost_handler())
            cmd_bus.register(UpdateCostCommand, self.update_cost_handler())
            cmd_bus.register(DeleteCostCommand, self.delete_cost_handler())
            cmd_bus.register(ReplicateRecurringCostsCommand, self.replicate_costs_handler())

            cmd_bus.register(CreateCardFeeRulesCommand, self.create_card_fees_handler())
            cmd_bus.register(DeactivateCardFeeRuleCommand, self.deactivate_card_fee_handler())
            cmd_bus.register(ReplaceCardFeeGroupCommand, self.replace_card_fee_group_handler())
            cmd_bus.register(DeactivateCardFeeGroupCommand, self.deactivate_card_fee_group_handler())

            cmd_bus.register(CreateQuoteCommand, self.create_quote_handler())
            cmd_bus.register(UpdateQuoteCommand, self.update_quote_handler())
            cmd_bus.register(DeleteQuoteCommand, self.delete_quote_handler())
            cmd_bus.register(ConvertQuoteCommand, self.convert_quote_handler())

            # Bus de queries
            qry_bus = self.query_bus()

            qry_bus.register(GetSaleQuery, self.get_sale_handler())
            qry_bus.register(ListSalesQuery, self.list_sales_handler())

            qry_bus.register(GetCostQuery, self.get_cost_handler())
            qry_bus.register(ListCostsQuery, self.list_costs_handler())
            qry_bus.register(GetCostStatsQuery, self.cost_stats_handler())
            qry_bus.register(GetVariableCostSummaryQuery, self.variable_costs_handler())
            qry_bus.register(GetPendingRecurrencesQuery, self.pending_recurrences_handler())
            qry_bus.register(ListCardFeeRulesQuery, self.list_card_fees_handler())

            qry_bus.register(GetQuoteQuery, self.get_quote_handler())
            qry_bus.register(ListQuotesQuery, self.list_quotes_handler())

            qry_bus.register(GetCashFlowQuery, self.cashflow_handler())
            qry_bus.register(GetDashboardStatsQuery, self.dashboard_handler())
            qry_bus.register(GetCommissionReportQuery, self.commissions_handler())

    # ------- INSTANCIAÇÃO E CONFIG -------
    container = Container()
    container.config.engine.default_tax_rate.from_value(Decimal(str(settings.DEFAULT_TAX_RATE)))
    container.config.engine.default_card_receiving_days.from_value(int(settings.DEFAULT_CARD_RECEIVING_DAYS))
    container.config.engine.installment_interval_days.from_value(int(settings.CARD_INSTALLMENT_INTERVAL_DAYS))
    container.config.engine.reconciliation_tolerance.from_value(Decimal(str(settings.RECONCILIATION_TOLERANCE)))
    Container.init(container)
    return container
